"""Shared plumbing for providers spoken to over plain HTTP."""

import logging
from typing import Any, Dict, Optional

import httpx

from ..base import BaseLLM, RateLimitError, APIError
from ...config.glimpse_config import LLMSettings

logger = logging.getLogger(__name__)


class HTTPProvider(BaseLLM):
    """
    Base for JSON-over-HTTP providers.

    PATTERN: One httpx.AsyncClient per provider, timeout from settings
    """

    default_endpoint: str = ""

    def __init__(self, settings: LLMSettings, client: Optional[httpx.AsyncClient] = None):
        super().__init__(settings)
        self.endpoint = settings.api_endpoint or self.default_endpoint
        self.client = client or httpx.AsyncClient(timeout=settings.timeout_seconds)

    def headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def post_json(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload and decode the JSON response.

        Raises:
            RateLimitError: On HTTP 429
            APIError: On timeouts, transport errors, error bodies or bad JSON
        """
        try:
            response = await self.client.post(
                self.endpoint,
                json=payload,
                headers=self.headers(),
            )
        except httpx.TimeoutException as e:
            self.logger.error(f"{self.name} request timeout: {e}")
            raise APIError(f"{self.name} request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            self.logger.error(f"{self.name} transport error: {e}")
            raise APIError(f"failed to make request: {str(e)}")

        if response.status_code == 429:
            raise RateLimitError(f"{self.name} rate limit: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError:
            raise APIError(
                f"failed to decode response ({response.status_code}): {response.text[:200]}"
            )

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise APIError(f"API error: {message}")

        if response.status_code >= 400:
            raise APIError(f"{self.name} API error: HTTP {response.status_code}")

        return data

    async def close(self) -> None:
        await self.client.aclose()
