"""Tests for generation providers and provider selection."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from glimpse.config import LLMSettings
from glimpse.llm import APIError, RateLimitError, UnsupportedProviderError, create_provider
from glimpse.llm.providers import ClaudeProvider, OllamaProvider, OpenAIProvider, ZAIProvider
from glimpse.models import ReviewRequest


@pytest.fixture
def request_obj():
    return ReviewRequest(
        system_prompt="Be strict.",
        context="=== FILE CHANGE REVIEW ===\nFile: a.go\n+x",
        task="Review these changes.",
    )


def mock_client(handler):
    """Build an AsyncClient whose requests are answered by handler."""
    captured = []

    def recorder(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(recorder)), captured


class TestClaudeProvider:
    """Tests for ClaudeProvider."""

    @pytest.mark.asyncio
    async def test_request_shape_and_reply(self, request_obj):
        client, captured = mock_client(
            lambda r: httpx.Response(
                200,
                json={"content": [{"type": "text", "text": "NEED FIX: NO"}, {"type": "text", "text": "\nok"}]},
            )
        )
        provider = ClaudeProvider(LLMSettings(provider="claude", api_key="sk-ant"), client=client)

        reply = await provider.agenerate(request_obj)

        assert reply == "NEED FIX: NO\nok"
        sent = captured[0]
        assert str(sent.url) == "https://api.anthropic.com/v1/messages"
        assert sent.headers["x-api-key"] == "sk-ant"
        assert sent.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(sent.content)
        assert body["model"] == "claude-3-5-sonnet-20241022"
        assert body["max_tokens"] == 4096
        assert body["system"] == "Be strict."
        assert body["messages"] == [
            {"role": "user", "content": f"{request_obj.context}\n\n{request_obj.task}"}
        ]
        await provider.close()

    @pytest.mark.asyncio
    async def test_no_content_blocks(self, request_obj):
        client, _ = mock_client(lambda r: httpx.Response(200, json={"content": []}))
        provider = ClaudeProvider(LLMSettings(provider="claude", api_key="k"), client=client)

        with pytest.raises(APIError, match="no response from API"):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, request_obj):
        client, captured = mock_client(lambda r: httpx.Response(200, json={}))
        provider = ClaudeProvider(LLMSettings(provider="claude"), client=client)

        with pytest.raises(APIError, match="No API key"):
            await provider.agenerate(request_obj)
        assert captured == []


class TestZAIProvider:
    """Tests for ZAIProvider."""

    @pytest.mark.asyncio
    async def test_request_shape_and_reply(self, request_obj):
        client, captured = mock_client(
            lambda r: httpx.Response(200, json={"choices": [{"message": {"content": "Looks good"}}]})
        )
        provider = ZAIProvider(LLMSettings(provider="zai", api_key="zk"), client=client)

        assert await provider.agenerate(request_obj) == "Looks good"

        sent = captured[0]
        assert str(sent.url) == "https://api.z.ai/api/coding/paas/v4/chat/completions"
        assert sent.headers["authorization"] == "Bearer zk"
        body = json.loads(sent.content)
        assert body["model"] == "glm-4.6"
        assert body["temperature"] == 1.0
        assert body["stream"] is False
        assert body["messages"][0] == {"role": "system", "content": "Be strict."}

    @pytest.mark.asyncio
    async def test_rate_limit(self, request_obj):
        client, _ = mock_client(lambda r: httpx.Response(429, text="slow down"))
        provider = ZAIProvider(LLMSettings(provider="zai", api_key="zk"), client=client)

        with pytest.raises(RateLimitError):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_error_body(self, request_obj):
        client, _ = mock_client(
            lambda r: httpx.Response(400, json={"error": {"message": "invalid model"}})
        )
        provider = ZAIProvider(LLMSettings(provider="zai", api_key="zk"), client=client)

        with pytest.raises(APIError, match="API error: invalid model"):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_invalid_json(self, request_obj):
        client, _ = mock_client(lambda r: httpx.Response(502, text="<html>bad gateway</html>"))
        provider = ZAIProvider(LLMSettings(provider="zai", api_key="zk"), client=client)

        with pytest.raises(APIError, match="failed to decode response"):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_timeout(self, request_obj):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = mock_client(handler)
        provider = ZAIProvider(LLMSettings(provider="zai", api_key="zk", timeout_seconds=3), client=client)

        with pytest.raises(APIError, match="timed out"):
            await provider.agenerate(request_obj)


class TestOllamaProvider:
    """Tests for OllamaProvider."""

    @pytest.mark.asyncio
    async def test_no_key_needed(self, request_obj):
        client, captured = mock_client(
            lambda r: httpx.Response(200, json={"message": {"role": "assistant", "content": "fine"}})
        )
        provider = OllamaProvider(LLMSettings(provider="ollama", max_tokens=256), client=client)

        assert await provider.agenerate(request_obj) == "fine"
        body = json.loads(captured[0].content)
        assert body["model"] == "qwen2.5-coder:14b"
        assert body["options"] == {"num_predict": 256}
        assert str(captured[0].url) == "http://localhost:11434/api/chat"

    @pytest.mark.asyncio
    async def test_missing_message(self, request_obj):
        client, _ = mock_client(lambda r: httpx.Response(200, json={"done": True}))
        provider = OllamaProvider(LLMSettings(provider="ollama", model="llama3.1:8b"), client=client)

        with pytest.raises(APIError, match="ollama pull llama3.1:8b"):
            await provider.agenerate(request_obj)


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    def make_provider(self, create):
        client = MagicMock()
        client.chat.completions.create = create
        client.close = AsyncMock()
        settings = LLMSettings(provider="openai", model="gpt-4o", api_key="sk")
        return OpenAIProvider(settings, client=client), client

    @pytest.mark.asyncio
    async def test_reply(self, request_obj):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="NEED FIX: YES\nbug"))]
        )
        create = AsyncMock(return_value=response)
        provider, client = self.make_provider(create)

        assert await provider.agenerate(request_obj) == "NEED FIX: YES\nbug"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == request_obj.to_messages()

        await provider.close()
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rate_limit_mapped(self, request_obj):
        http_request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.RateLimitError(
            "rate limited", response=httpx.Response(429, request=http_request), body=None
        )
        provider, _ = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(RateLimitError):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_timeout_mapped(self, request_obj):
        http_request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        provider, _ = self.make_provider(
            AsyncMock(side_effect=openai.APITimeoutError(request=http_request))
        )

        with pytest.raises(APIError, match="timed out"):
            await provider.agenerate(request_obj)

    @pytest.mark.asyncio
    async def test_empty_choices(self, request_obj):
        provider, _ = self.make_provider(AsyncMock(return_value=SimpleNamespace(choices=[])))

        with pytest.raises(APIError, match="no response from API"):
            await provider.agenerate(request_obj)


class TestCreateProvider:
    """Tests for provider selection."""

    def test_known_providers(self):
        provider = create_provider(LLMSettings(provider="ollama", model="llama3.1:8b"))

        assert isinstance(provider, OllamaProvider)
        assert provider.describe() == "ollama:llama3.1:8b"

    def test_provider_name_case_insensitive(self):
        provider = create_provider(LLMSettings(provider="Claude", api_key="k"))

        assert isinstance(provider, ClaudeProvider)

    def test_planned_provider(self):
        with pytest.raises(UnsupportedProviderError, match="not yet implemented"):
            create_provider(LLMSettings(provider="gemini", model="gemini-pro"))

    def test_unknown_provider(self):
        with pytest.raises(UnsupportedProviderError, match="unsupported provider"):
            create_provider(LLMSettings(provider="mystery"))
