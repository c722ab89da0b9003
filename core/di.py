"""Dependency Injection container for the image agent.

Provides centralized access to all services and dependencies.
"""

from typing import Any

from core import settings
from core.logging import configure_json_logging

# LLM
from adapter.llm.client import LLMClient

# Measurement API
from adapter.processor.size_api import SizeMeasurementClient


class Container:
    """Simple DI container exposing factories for core dependencies."""

    def __init__(self) -> None:
        configure_json_logging(settings.LOG_LEVEL)
        self._services = {}

    def llm(self) -> LLMClient:
        """Get LLM client instance."""
        return LLMClient(model=settings.OPENAI_MODEL)

    def measurement_client(self, api_key: str | None = None) -> SizeMeasurementClient:
        """Get a measurement API client for the configured base URL."""
        return SizeMeasurementClient(settings.SIZE_API_BASE_URL, api_key=api_key)

    def get(self, name: str) -> Any:
        """
        Get a service by name (lazy initialization).

        Args:
            name: Service name (e.g., 'image_service', 'size_plugin')

        Returns:
            Service instance
        """
        if name not in self._services:
            self._services[name] = self._create_service(name)
        return self._services[name]

    def _create_service(self, name: str) -> Any:
        """Factory method to create services on demand."""
        if name == "image_service":
            from service.image_service import ImageDescriptionService
            return ImageDescriptionService(measurement_client=self.measurement_client())
        elif name == "size_plugin":
            from service.size_plugin import SizeMeasurementPlugin
            return SizeMeasurementPlugin(llm=self.llm(), client=self.measurement_client(settings.SIZE_API_KEY))
        else:
            raise ValueError(f"Unknown service: {name}")


# Global container instance
container = Container()
