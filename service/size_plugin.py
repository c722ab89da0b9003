import logging
import random
from typing import Any, Dict, Optional, Union

from adapter.llm.client import LLMClient
from adapter.processor.size_api import SizeMeasurementClient
from core.exceptions import ConfigurationError
from core.settings import MEASUREMENT_APOLOGY
from domain.schemas.config import SizePluginConfig
from domain.schemas.image import MeasurementResponse
from service.response_formatter import build_plugin_response, fallback_one_liner, funny_prompt


logger = logging.getLogger(__name__)


class SizeMeasurementPlugin:
    """Measures objects in images and provides fun responses.

    Responsibilities:
    - Forward image URLs to the measurement API (authenticated)
    - Ask the LLM for a one-liner, falling back to a canned joke
    - Gate chat messages: only "size" questions that carry an image
    """

    name = "SizeMeasurementPlugin"
    description = "Measures objects in images and provides fun responses"

    def __init__(
        self,
        config: Optional[SizePluginConfig] = None,
        llm: Optional[LLMClient] = None,
        client: Optional[SizeMeasurementClient] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        logger.info("[SizeMeasurementPlugin] Initializing...")
        self.config = config or SizePluginConfig.from_settings()
        if not self.config.api_key:
            raise ConfigurationError("[SizeMeasurementPlugin] API key is required")
        self.llm = llm or LLMClient(model=self.config.text_model)
        self.client = client or SizeMeasurementClient(self.config.base_url, api_key=self.config.api_key)
        self.rng = rng
        logger.info(f"[SizeMeasurementPlugin] Initialized with base_url={self.config.base_url}")

    async def generate_one_liner(self, measurement_cm: float) -> str:
        try:
            return (await self.llm.generate_text(funny_prompt(measurement_cm))).strip()
        except Exception as e:
            logger.error(f"[SizeMeasurementPlugin] Error generating funny response: {e}")
            return fallback_one_liner(measurement_cm, self.rng)

    async def measure_image(self, image_url: str) -> Union[MeasurementResponse, str]:
        """Measure an image; failures come back as a user-facing apology string."""
        try:
            logger.info(f"[SizeMeasurementPlugin] Starting measurement process for image: {image_url}")
            data = await self.client.fetch(image_url)
            one_liner = await self.generate_one_liner(data.measurement_cm)
            return build_plugin_response(data, self.client.base_url, one_liner)
        except Exception as e:
            logger.error(f"[SizeMeasurementPlugin] Error: {e}")
            return MEASUREMENT_APOLOGY.format(reason=str(e) or "It's not you, it's me!")

    async def handle_message(self, message: Dict[str, Any]) -> Union[MeasurementResponse, str, None]:
        """Handle a chat message of the form ``{"text": ..., "image": {"url": ...}}``."""
        try:
            text = message.get("text") or ""
            image = message.get("image") or {}
            image_url = image.get("url") if isinstance(image, dict) else None
            if "size" not in text.lower() or not image_url:
                return None

            logger.info("[SizeMeasurementPlugin] Processing message with image")
            return await self.measure_image(image_url)
        except Exception as e:
            logger.error(f"[SizeMeasurementPlugin] Message handling error: {e}")
            return None

    def cleanup(self) -> None:
        logger.info("[SizeMeasurementPlugin] Cleaning up...")
