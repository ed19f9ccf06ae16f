"""Provider adapters."""

from .base import ProviderAdapter, ProviderResponse
from .openai_provider import OpenAICompatibleProvider
from .registry import ProviderRegistry

__all__ = [
    "OpenAICompatibleProvider",
    "ProviderAdapter",
    "ProviderRegistry",
    "ProviderResponse",
]
