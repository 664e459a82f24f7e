"""Select the provider implementation for the configured name."""

import logging
from typing import Dict, Type

from .base import BaseLLM, UnsupportedProviderError
from .providers import ClaudeProvider, OllamaProvider, OpenAIProvider, ZAIProvider
from ..config.glimpse_config import LLMSettings

logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[BaseLLM]] = {
    OpenAIProvider.name: OpenAIProvider,
    ClaudeProvider.name: ClaudeProvider,
    ZAIProvider.name: ZAIProvider,
    OllamaProvider.name: OllamaProvider,
}

# Listed in setup prompts but not implemented yet
PLANNED_PROVIDERS = ("gemini",)


def create_provider(settings: LLMSettings) -> BaseLLM:
    """
    Build the provider named in settings.

    Raises:
        UnsupportedProviderError: For unknown or unimplemented providers
    """
    name = settings.provider.lower()
    if name in PLANNED_PROVIDERS:
        raise UnsupportedProviderError(f"{name} provider not yet implemented")

    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise UnsupportedProviderError(f"unsupported provider: {settings.provider}")

    provider = provider_cls(settings)
    logger.info(f"Using provider {provider.describe()}")
    return provider
