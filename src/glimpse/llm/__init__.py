"""Generation providers for code review."""

from .base import BaseLLM, ProviderError, RateLimitError, APIError, UnsupportedProviderError
from .factory import PROVIDERS, create_provider

__all__ = [
    "BaseLLM",
    "ProviderError",
    "RateLimitError",
    "APIError",
    "UnsupportedProviderError",
    "PROVIDERS",
    "create_provider",
]
