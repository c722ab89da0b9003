import asyncio
import logging
import uuid
from typing import Optional

from adapter.processor.florence import LocalImageProvider
from adapter.processor.size_api import SizeMeasurementClient
from adapter.processor.vision import GoogleImageProvider, ImageProvider, OpenAIImageProvider
from adapter.utils.image import load_image_data
from core.exceptions import ConfigurationError
from core.logging import image_ref_ctx, request_id_ctx
from domain.schemas.config import ImageServiceConfig
from domain.schemas.image import DescriptionResult, MeasurementResponse, ModelProviderName
from service.response_formatter import build_service_response, measurement_title


logger = logging.getLogger(__name__)


_PROVIDERS = {
    ModelProviderName.llama_local: LocalImageProvider,
    ModelProviderName.google: GoogleImageProvider,
    ModelProviderName.openai: OpenAIImageProvider,
}


def _provider_name(value: Optional[str]) -> Optional[ModelProviderName]:
    try:
        return ModelProviderName((value or "").strip().lower())
    except ValueError:
        return None


def select_provider(config: ImageServiceConfig) -> ImageProvider:
    """Pick the vision backend for this configuration.

    An explicit ``vision_model_provider`` wins and must name a known backend.
    Otherwise the general ``model_provider`` decides, with OpenAI as default.
    """
    if config.vision_model_provider:
        name = _provider_name(config.vision_model_provider)
        if name is None:
            logger.error(f"[ImageService] Unsupported image vision model provider: {config.vision_model_provider}")
            raise ConfigurationError(f"Unsupported image vision model provider: {config.vision_model_provider}")
        logger.debug(f"[ImageService] Using {name.value} for vision model")
        return _PROVIDERS[name](config)

    name = _provider_name(config.model_provider)
    if name in (ModelProviderName.llama_local, ModelProviderName.google):
        logger.debug(f"[ImageService] Using {name.value} for vision model")
        return _PROVIDERS[name](config)

    logger.debug("[ImageService] Using default openai for vision model")
    return OpenAIImageProvider(config)


class ImageDescriptionService:
    """Describes images, trying the size measurement shortcut first.

    The provider is selected and initialized once, on first use. Concurrent
    first callers wait on the same initialization.
    """

    def __init__(self, config: Optional[ImageServiceConfig] = None, measurement_client: Optional[SizeMeasurementClient] = None) -> None:
        self.config = config or ImageServiceConfig.from_settings()
        self.measurement_client = measurement_client or SizeMeasurementClient(self.config.size_api_base_url)
        self.provider: Optional[ImageProvider] = None
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize_provider(self) -> ImageProvider:
        if self._initialized and self.provider is not None:
            return self.provider
        async with self._init_lock:
            if not self._initialized:
                provider = select_provider(self.config)
                await provider.initialize()
                self.provider = provider
                self._initialized = True
        return self.provider

    def reset(self) -> None:
        """Drop the cached provider; the next call selects and initializes again."""
        self.provider = None
        self._initialized = False

    async def measure_image(self, image_url: str) -> Optional[MeasurementResponse]:
        """Return a measurement response, or None when there is nothing to report.

        Never raises: any failure means "no measurement".
        """
        try:
            logger.info(f"[ImageService] Starting measurement process for image: {image_url}")
            data = await self.measurement_client.fetch(image_url)
            if data.measurement_cm == 0:
                logger.debug("[ImageService] Measurement is 0, skipping measurement response")
                return None
            return build_service_response(data, self.measurement_client.base_url)
        except Exception as e:
            logger.debug(f"[ImageService] Error in measurement, skipping: {e}")
            return None

    async def describe_image(self, image_url: str) -> DescriptionResult:
        request_id_ctx.set(uuid.uuid4().hex)
        image_ref_ctx.set(image_url)
        provider = await self.initialize_provider()

        try:
            measurement = await self.measure_image(image_url)
            if measurement is not None:
                return DescriptionResult(
                    title=measurement_title(measurement.measurement_cm),
                    description=measurement.formatted_text,
                )

            data, mime_type = await load_image_data(image_url)
            return await provider.describe(data, mime_type)
        except Exception as e:
            logger.error(f"[ImageService] Error in describe_image: {e}")
            raise
