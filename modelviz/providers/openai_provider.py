"""Adapter for OpenAI-compatible chat completion endpoints."""

from typing import Any

import httpx
from openai import APIError, APIStatusError, APITimeoutError, AsyncOpenAI

from modelviz.exceptions import ProviderError, ProviderTimeoutError
from modelviz.log import get_logger
from modelviz.models.blend import ModelSettings
from modelviz.pricing import calculate_cost
from modelviz.providers.base import ProviderAdapter, ProviderResponse

logger = get_logger(__name__)

CONNECT_TIMEOUT = 10.0


class OpenAICompatibleProvider(ProviderAdapter):
    """Calls ``/chat/completions`` through the official async client.

    Works for any backend that speaks the OpenAI protocol: OpenAI itself,
    DeepSeek, Groq, Perplexity, Mistral, and the OpenAI-compatible
    endpoints of Anthropic and Google.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        provider_name: str = "openai",
        timeout: float = 60.0,
        max_retries: int = 0,
    ) -> None:
        self._provider_name = provider_name
        self._base_url = base_url.rstrip("/")
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=self._base_url,
            max_retries=max_retries,
            http_client=httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, connect=CONNECT_TIMEOUT)
            ),
        )

        logger.info(
            f"Initialized {self.__class__.__name__} "
            f"with {provider_name=}, {base_url=}, {max_retries=}"
        )

    @property
    def provider_name(self) -> str:
        return self._provider_name

    async def call(
        self,
        model_id: str,
        provider: str,
        prompt: str,
        system_prompt: str | None = None,
        settings: ModelSettings | None = None,
    ) -> ProviderResponse:
        request_data = self._build_request(model_id, prompt, system_prompt, settings)
        logger.debug(f"/chat/completions {provider=} model={model_id}")

        try:
            response = await self._client.chat.completions.create(**request_data)
        except APITimeoutError as e:
            raise ProviderTimeoutError(
                f"{provider} request timed out", provider=provider
            ) from e
        except APIStatusError as e:
            raise ProviderError(
                f"{provider} returned HTTP {e.status_code}: {e.message}",
                provider=provider,
                status_code=e.status_code,
            ) from e
        except APIError as e:
            raise ProviderError(
                f"{provider} request failed: {e}", provider=provider
            ) from e

        if not response.choices:
            raise ProviderError(f"{provider} returned no choices", provider=provider)

        text = response.choices[0].message.content or ""
        if response.usage is None:
            return ProviderResponse(text=text)

        input_tokens = response.usage.prompt_tokens
        output_tokens = response.usage.completion_tokens
        return ProviderResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=calculate_cost(provider, model_id, input_tokens, output_tokens),
        )

    def _build_request(
        self,
        model_id: str,
        prompt: str,
        system_prompt: str | None,
        settings: ModelSettings | None,
    ) -> dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_data: dict[str, Any] = {"model": model_id, "messages": messages}
        if settings is not None:
            request_data.update(settings.model_dump(exclude_none=True))
        return request_data
