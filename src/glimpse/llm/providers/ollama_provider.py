"""Ollama provider for local model integration."""

from .http_provider import HTTPProvider
from ..base import APIError
from ...models import ReviewRequest


class OllamaProvider(HTTPProvider):
    """
    Ollama provider for local model access.

    GOTCHA: Models must be pulled before use with ollama pull
    """

    name = "ollama"
    default_model = "qwen2.5-coder:14b"
    default_endpoint = "http://localhost:11434/api/chat"

    async def agenerate(self, request: ReviewRequest) -> str:
        data = await self.post_json(
            {
                "model": self.model,
                "messages": request.to_messages(),
                "stream": False,
                "options": {"num_predict": self.settings.max_tokens},
            }
        )

        message = data.get("message")
        if not message:
            raise APIError(
                f"Model {self.model} returned no message. Run: ollama pull {self.model}"
            )
        return message.get("content", "")
