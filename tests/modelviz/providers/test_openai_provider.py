"""Tests for the OpenAI-compatible provider adapter and the registry."""

import pytest
from pytest_httpserver import HTTPServer

from modelviz.exceptions import ProviderError
from modelviz.models import ModelSettings
from modelviz.pricing import calculate_cost
from modelviz.providers import OpenAICompatibleProvider, ProviderRegistry


@pytest.fixture
def provider(mock_openai_server: HTTPServer) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        api_key="test-api-key",
        base_url=f"http://{mock_openai_server.host}:{mock_openai_server.port}/v1",
    )


class TestOpenAICompatibleProvider:
    @pytest.mark.asyncio
    async def test_successful_call(self, provider: OpenAICompatibleProvider) -> None:
        response = await provider.call("gpt-4o-mini", "openai", "Capital of France?")

        assert response.text == "Paris is the capital of France."
        assert response.input_tokens == 12
        assert response.output_tokens == 8
        assert response.cost == calculate_cost("openai", "gpt-4o-mini", 12, 8)
        assert response.cost > 0

    @pytest.mark.asyncio
    async def test_request_body(
        self, provider: OpenAICompatibleProvider, mock_openai_server: HTTPServer
    ) -> None:
        await provider.call(
            "gpt-4o",
            "openai",
            "Capital of France?",
            system_prompt="Answer briefly.",
            settings=ModelSettings(temperature=0.2, max_tokens=50),
        )

        request, _ = mock_openai_server.log[-1]
        body = request.get_json()
        assert body["model"] == "gpt-4o"
        assert body["messages"] == [
            {"role": "system", "content": "Answer briefly."},
            {"role": "user", "content": "Capital of France?"},
        ]
        assert body["temperature"] == 0.2
        assert body["max_tokens"] == 50
        assert "top_p" not in body

    @pytest.mark.asyncio
    async def test_server_error(self, provider: OpenAICompatibleProvider) -> None:
        with pytest.raises(ProviderError) as exc_info:
            await provider.call("broken-model", "openai", "hello")

        assert exc_info.value.status_code == 500
        assert exc_info.value.provider == "openai"


class TestProviderRegistry:
    @pytest.mark.asyncio
    async def test_dispatches_by_provider(
        self, provider: OpenAICompatibleProvider
    ) -> None:
        registry = ProviderRegistry()
        registry.register("OpenAI", provider)

        response = await registry.call("gpt-4o", "openai", "Capital of France?")

        assert registry.providers == ["openai"]
        assert response.text == "Paris is the capital of France."

    @pytest.mark.asyncio
    async def test_unknown_provider(self) -> None:
        with pytest.raises(ProviderError, match="No adapter registered"):
            await ProviderRegistry().call("claude-3", "anthropic", "hello")
