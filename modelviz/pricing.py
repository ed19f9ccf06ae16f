"""Cost calculation for provider API usage.

Prices are USD per 1K tokens and live in ``constants.PRICING_TABLE``.
Provider names match case-insensitively. Model names match exactly first,
then by the longest known name contained in the model id, then by the
shortest known name containing it.
"""

import math

from pydantic import BaseModel

from modelviz.constants import (
    CHARS_PER_TOKEN,
    COST_PRECISION,
    PRICING_TABLE,
    TOKENS_PER_THOUSAND,
)
from modelviz.log import get_logger

logger = get_logger(__name__)


class ModelPricing(BaseModel):
    """Price of a model per 1K input and output tokens."""

    input: float
    output: float


def _resolve_provider(provider: str) -> str | None:
    for name in PRICING_TABLE:
        if name.lower() == provider.lower():
            return name
    return None


def _resolve_model(
    provider_pricing: dict[str, dict[str, float]], model: str
) -> str | None:
    if model in provider_pricing:
        return model
    lowered = model.lower()
    # Most specific known name inside the model id, e.g. gpt-4o in gpt-4o-2024-08-06
    contained = [name for name in provider_pricing if name.lower() in lowered]
    if contained:
        return max(contained, key=len)
    containing = [name for name in provider_pricing if lowered in name.lower()]
    return min(containing, key=len) if containing else None


def calculate_cost(
    provider: str,
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
) -> float:
    """Estimated USD cost of a call; 0 when the model has no known pricing."""
    provider_name = _resolve_provider(provider)
    if provider_name is None:
        logger.warning(f"No pricing found for provider: {provider}")
        return 0.0

    provider_pricing = PRICING_TABLE[provider_name]
    model_name = _resolve_model(provider_pricing, model)
    if model_name is None:
        logger.warning(f"No pricing found for model: {model} ({provider=})")
        return 0.0

    pricing = provider_pricing[model_name]
    input_cost = (prompt_tokens / TOKENS_PER_THOUSAND) * pricing["input"]
    output_cost = (completion_tokens / TOKENS_PER_THOUSAND) * pricing["output"]
    return round(input_cost + output_cost, COST_PRECISION)


def estimate_tokens(text: str) -> int:
    """Rough token count assuming ~4 characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def get_model_pricing(provider: str, model: str) -> ModelPricing | None:
    """Exact-match pricing lookup."""
    provider_name = _resolve_provider(provider)
    if provider_name is None:
        return None
    pricing = PRICING_TABLE[provider_name].get(model)
    return ModelPricing(**pricing) if pricing else None


def get_available_providers() -> list[str]:
    """Provider names with known pricing, lower-cased like registry keys."""
    return [name.lower() for name in PRICING_TABLE]


def get_provider_models(provider: str) -> list[str]:
    provider_name = _resolve_provider(provider)
    return list(PRICING_TABLE[provider_name]) if provider_name else []


def format_cost(cost: float) -> str:
    """Format a USD cost for display."""
    if cost == 0:
        return "$0.00"
    if cost < 0.000001:
        return "<$0.000001"
    if cost < 0.01:
        return f"${cost:.6f}"
    return f"${cost:.4f}"


def calculate_savings(cost_a: float, cost_b: float) -> float:
    """Percentage saved by option A relative to option B."""
    if cost_b == 0:
        return 0.0
    return (cost_b - cost_a) / cost_b * 100


def project_monthly_cost(total_cost: float, days_elapsed: float) -> float:
    """Project a 30-day cost from the daily average so far."""
    if days_elapsed == 0:
        return 0.0
    return total_cost / days_elapsed * 30
