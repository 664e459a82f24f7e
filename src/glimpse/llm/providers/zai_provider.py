"""Z.AI (GLM) provider over its OpenAI-compatible endpoint."""

from typing import Dict

from .http_provider import HTTPProvider
from ..base import APIError
from ...models import ReviewRequest


class ZAIProvider(HTTPProvider):
    """Z.AI coding endpoint provider."""

    name = "zai"
    default_model = "glm-4.6"
    default_endpoint = "https://api.z.ai/api/coding/paas/v4/chat/completions"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept-Language": "en-US,en",
            "Authorization": f"Bearer {self.require_api_key()}",
        }

    async def agenerate(self, request: ReviewRequest) -> str:
        data = await self.post_json(
            {
                "model": self.model,
                "messages": request.to_messages(),
                "temperature": 1.0,
                "stream": False,
            }
        )

        choices = data.get("choices") or []
        if not choices:
            raise APIError("no response from API")
        return choices[0].get("message", {}).get("content", "")
