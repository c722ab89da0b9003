import logging
from typing import Optional

from openai import AsyncOpenAI

from core import settings
from core.exceptions import ConfigurationError, DependencyError


logger = logging.getLogger(__name__)


_client: Optional[AsyncOpenAI] = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        api_key = settings.OPENAI_API_KEY
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not set")
        _client = AsyncOpenAI(api_key=api_key, base_url=settings.OPENAI_ENDPOINT)
    return _client


def _truncate(s: str, limit: int = 800) -> str:
    if not s:
        return s
    return s[:limit] + ("..." if len(s) > limit else "")


class LLMClient:
    """Thin async OpenAI client wrapper for short free-text generations."""

    def __init__(self, model: str | None = None) -> None:
        self.model = model or settings.OPENAI_MODEL

    async def generate_text(self, prompt: str, *, temperature: float = 0.9, max_tokens: int = 80) -> str:
        """Return the model's reply to a single user prompt.

        Raises:
            ConfigurationError: no API key configured
            DependencyError: the call failed or returned no text
        """
        client = _get_client()
        logger.info(f"LLM generate prompt: {_truncate(prompt)}")
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise DependencyError(f"LLM generate failed: {e}") from e
        content = (resp.choices[0].message.content or "").strip()
        logger.info(f"LLM generate output: {_truncate(content)}")
        if not content:
            raise DependencyError("LLM returned an empty reply")
        return content
