from typing import Optional
from pydantic import BaseModel, Field

from core import settings


class ImageServiceConfig(BaseModel):
    """Configuration consumed by ImageDescriptionService and its providers."""

    vision_model_provider: Optional[str] = Field(None, description="Overrides model_provider for vision")
    model_provider: str = "openai"
    openai_api_key: str = ""
    openai_endpoint: str = "https://api.openai.com/v1"
    openai_vision_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 500
    google_api_key: str = ""
    google_endpoint: str = "https://generativelanguage.googleapis.com"
    google_vision_model: str = "gemini-1.5-pro"
    local_model_id: str = "microsoft/Florence-2-base-ft"
    local_max_new_tokens: int = 256
    size_api_base_url: str = "https://sizematters.app"

    @classmethod
    def from_settings(cls) -> "ImageServiceConfig":
        return cls(
            vision_model_provider=settings.VISION_MODEL_PROVIDER or None,
            model_provider=settings.MODEL_PROVIDER,
            openai_api_key=settings.OPENAI_API_KEY,
            openai_endpoint=settings.OPENAI_ENDPOINT,
            openai_vision_model=settings.OPENAI_VISION_MODEL,
            openai_max_tokens=settings.OPENAI_VISION_MAX_TOKENS,
            google_api_key=settings.GOOGLE_GENERATIVE_AI_API_KEY,
            google_endpoint=settings.GOOGLE_ENDPOINT,
            google_vision_model=settings.GOOGLE_VISION_MODEL,
            local_model_id=settings.LOCAL_VISION_MODEL_ID,
            local_max_new_tokens=settings.LOCAL_MAX_NEW_TOKENS,
            size_api_base_url=settings.SIZE_API_BASE_URL,
        )


class SizePluginConfig(BaseModel):
    api_key: str = ""
    base_url: str = "https://sizematters.app"
    text_model: str = "gpt-4o-mini"

    @classmethod
    def from_settings(cls) -> "SizePluginConfig":
        return cls(
            api_key=settings.SIZE_API_KEY,
            base_url=settings.SIZE_API_BASE_URL,
            text_model=settings.OPENAI_MODEL,
        )
