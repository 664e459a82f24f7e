"""Base generation provider abstraction."""

import logging
from abc import ABC, abstractmethod

from ..config.glimpse_config import LLMSettings
from ..models import ReviewRequest

logger = logging.getLogger(__name__)


class BaseLLM(ABC):
    """
    Abstract base class for all generation providers.

    One subclass per provider, chosen once at construction time.
    Providers enforce their own request timeout and raise ProviderError
    subclasses on failure.
    """

    name: str = "base"
    default_model: str = ""

    def __init__(self, settings: LLMSettings):
        """
        Initialize provider.

        Args:
            settings: LLM settings from configuration
        """
        self.settings = settings
        self.model = settings.model or self.default_model
        self.timeout = settings.timeout_seconds
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    async def agenerate(self, request: ReviewRequest) -> str:
        """
        Generate a review for the request.

        Args:
            request: System prompt, context and task

        Returns:
            Generated text

        Raises:
            RateLimitError: When rate limited
            APIError: On API or transport failures
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass

    def require_api_key(self) -> str:
        if not self.settings.api_key:
            raise APIError(f"No API key configured for provider '{self.name}'")
        return self.settings.api_key

    def describe(self) -> str:
        return f"{self.name}:{self.model}"


class ProviderError(Exception):
    """Base error for generation providers."""

    pass


class RateLimitError(ProviderError):
    """Raised when rate limited by provider."""

    pass


class APIError(ProviderError):
    """Raised on API failures."""

    pass


class UnsupportedProviderError(ProviderError):
    """Raised when no implementation exists for a configured provider."""

    pass
