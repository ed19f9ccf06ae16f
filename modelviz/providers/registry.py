"""Dispatch provider calls to per-backend adapters."""

from modelviz.config import Settings
from modelviz.exceptions import ProviderError
from modelviz.log import get_logger
from modelviz.models.blend import ModelSettings
from modelviz.providers.base import ProviderAdapter, ProviderResponse
from modelviz.providers.openai_provider import OpenAICompatibleProvider

logger = get_logger(__name__)


class ProviderRegistry(ProviderAdapter):
    """An adapter that routes each call by provider name (case-insensitive)."""

    def __init__(self) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}

    def register(self, provider: str, adapter: ProviderAdapter) -> None:
        key = provider.lower()
        if key in self._adapters:
            logger.warning(f"Replacing adapter for provider {provider}")
        self._adapters[key] = adapter
        logger.debug(f"Registered {adapter.__class__.__name__} for {provider}")

    def get(self, provider: str) -> ProviderAdapter | None:
        return self._adapters.get(provider.lower())

    @property
    def providers(self) -> list[str]:
        return sorted(self._adapters)

    async def call(
        self,
        model_id: str,
        provider: str,
        prompt: str,
        system_prompt: str | None = None,
        settings: ModelSettings | None = None,
    ) -> ProviderResponse:
        adapter = self.get(provider)
        if adapter is None:
            raise ProviderError(
                f"No adapter registered for provider {provider}", provider=provider
            )
        return await adapter.call(model_id, provider, prompt, system_prompt, settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        """Register an OpenAI-compatible adapter for every provider with a key."""
        registry = cls()
        for provider in settings.configured_providers:
            registry.register(
                provider,
                OpenAICompatibleProvider(
                    api_key=settings.provider_api_keys[provider],
                    base_url=settings.provider_base_urls[provider],
                    provider_name=provider,
                    timeout=settings.call_timeout_seconds,
                    max_retries=settings.provider_max_retries,
                ),
            )

        if not registry.providers:
            logger.warning("No provider API keys configured")
        return registry
