"""Anthropic Claude provider via the Messages API."""

from typing import Dict

from .http_provider import HTTPProvider
from ..base import APIError
from ...models import ReviewRequest

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeProvider(HTTPProvider):
    """
    Claude provider.

    GOTCHA: The system prompt is a top-level field, not a message
    """

    name = "claude"
    default_model = "claude-3-5-sonnet-20241022"
    default_endpoint = "https://api.anthropic.com/v1/messages"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.require_api_key(),
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def agenerate(self, request: ReviewRequest) -> str:
        payload = {
            "model": self.model,
            "max_tokens": self.settings.max_tokens,
            "messages": [
                {"role": "user", "content": f"{request.context}\n\n{request.task}"}
            ],
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        data = await self.post_json(payload)

        blocks = [b.get("text", "") for b in data.get("content", []) if b.get("type") == "text"]
        if not blocks:
            raise APIError("no response from API")
        return "".join(blocks)
