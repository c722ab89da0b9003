class ImageAgentError(Exception):
    """Base exception for the image agent."""


class ConfigurationError(ImageAgentError):
    """Raised when required configuration/environment is missing or invalid."""


class DependencyError(ImageAgentError):
    """Raised when an external dependency (HTTP API, model) fails."""


class FetchError(DependencyError):
    """Raised when an image cannot be downloaded."""


class ApiError(DependencyError):
    """Raised when a remote API answers with a non-success status."""

    def __init__(self, provider: str, status: int, body: str = "") -> None:
        super().__init__(f"{provider} API error: HTTP {status}")
        self.provider = provider
        self.status = status
        self.body = body


class GenerationError(DependencyError):
    """Raised when local model inference fails."""


class EmptyImageError(ImageAgentError):
    """Raised when an image resolves to zero bytes."""


class ValidationError(ImageAgentError):
    """Raised for malformed input or upstream payloads."""
