"""Generation provider implementations."""

from .claude_provider import ClaudeProvider
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider
from .zai_provider import ZAIProvider

__all__ = [
    "ClaudeProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "ZAIProvider",
]
