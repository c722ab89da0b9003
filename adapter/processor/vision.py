import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import aiohttp
from openai import APIStatusError, AsyncOpenAI

from core.exceptions import ApiError, ConfigurationError, ValidationError
from core.settings import IMAGE_DESCRIPTION_PROMPT
from domain.schemas.config import ImageServiceConfig
from domain.schemas.image import DescriptionResult


logger = logging.getLogger(__name__)


def to_base64_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_image_response(text: str) -> DescriptionResult:
    """Split a 'title\\ndescription' reply into its two parts."""
    title, *description_parts = (text or "").split("\n")
    return DescriptionResult(title=title, description="\n".join(description_parts))


def _log_api_error(provider: str, status: int, body: str) -> None:
    logger.error(f"[Vision] {provider} API error: {status} - {body}")


class ImageProvider(ABC):
    """A backend that turns raw image bytes into a title/description pair."""

    name: str = "base"

    @abstractmethod
    async def initialize(self) -> None:
        ...

    @abstractmethod
    async def describe(self, data: bytes, mime_type: str) -> DescriptionResult:
        ...


class OpenAIImageProvider(ImageProvider):
    """Describes images through an OpenAI-compatible chat completions endpoint."""

    name = "OpenAI"

    def __init__(self, config: ImageServiceConfig) -> None:
        self.config = config
        self._client: AsyncOpenAI | None = None

    async def initialize(self) -> None:
        if not self.config.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY not set")

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_endpoint,
            )
        return self._client

    async def describe(self, data: bytes, mime_type: str) -> DescriptionResult:
        content = [
            {"type": "text", "text": IMAGE_DESCRIPTION_PROMPT},
            {"type": "image_url", "image_url": {"url": to_base64_data_url(data, mime_type)}},
        ]
        try:
            resp = await self._get_client().chat.completions.create(
                model=self.config.openai_vision_model,
                messages=[{"role": "user", "content": content}],
                max_tokens=self.config.openai_max_tokens,
            )
        except APIStatusError as e:
            body = e.response.text if e.response is not None else ""
            _log_api_error(self.name, e.status_code, body)
            raise ApiError(self.name, e.status_code, body) from e
        return parse_image_response((resp.choices[0].message.content or "").strip())


class GoogleImageProvider(ImageProvider):
    """Describes images through the Gemini generateContent REST endpoint."""

    name = "Google Gemini"

    def __init__(self, config: ImageServiceConfig) -> None:
        self.config = config

    async def initialize(self) -> None:
        if not self.config.google_api_key:
            raise ConfigurationError("GOOGLE_GENERATIVE_AI_API_KEY not set")

    def _build_payload(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": IMAGE_DESCRIPTION_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(data).decode("ascii"),
                            }
                        },
                    ]
                }
            ]
        }

    async def describe(self, data: bytes, mime_type: str) -> DescriptionResult:
        endpoint = self.config.google_endpoint.rstrip("/")
        url = f"{endpoint}/v1/models/{self.config.google_vision_model}:generateContent"
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                params={"key": self.config.google_api_key},
                json=self._build_payload(data, mime_type),
            ) as resp:
                if not resp.ok:
                    body = await resp.text()
                    _log_api_error(self.name, resp.status, body)
                    raise ApiError(self.name, resp.status, body)
                payload = await resp.json()

        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValidationError(f"Unexpected Gemini response: {e}") from e
        return parse_image_response(text.strip())
