"""OpenAI provider for GPT model access."""

import logging

from openai import (
    AsyncOpenAI,
    APIError as OpenAIAPIError,
    APITimeoutError as OpenAITimeoutError,
    RateLimitError as OpenAIRateLimitError,
)

from ..base import BaseLLM, RateLimitError, APIError
from ...config.glimpse_config import LLMSettings
from ...models import ReviewRequest

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLM):
    """
    OpenAI provider for GPT model access.

    PATTERN: Official OpenAI SDK with async client
    GOTCHA: Rate limits surface as RateLimitError, never retried here
    """

    name = "openai"
    default_model = "gpt-4o"

    def __init__(self, settings: LLMSettings, client: AsyncOpenAI = None):
        """
        Initialize OpenAI provider.

        Args:
            settings: LLM settings
            client: Optional preconfigured client
        """
        super().__init__(settings)
        self.client = client or AsyncOpenAI(
            api_key=self.require_api_key(),
            base_url=settings.api_endpoint,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    async def agenerate(self, request: ReviewRequest) -> str:
        """
        Generate response using the chat completions API.

        Raises:
            RateLimitError: When rate limited
            APIError: On API failures
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=request.to_messages(),
                max_tokens=self.settings.max_tokens,
            )
        except OpenAIRateLimitError as e:
            self.logger.warning(f"Rate limited: {e}")
            raise RateLimitError(f"OpenAI rate limit: {str(e)}")
        except OpenAITimeoutError:
            raise APIError(f"OpenAI request timed out after {self.timeout}s")
        except OpenAIAPIError as e:
            self.logger.error(f"OpenAI API error: {e}")
            raise APIError(f"OpenAI API error: {str(e)}")

        if not response.choices:
            raise APIError("no response from API")
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        await self.client.close()
