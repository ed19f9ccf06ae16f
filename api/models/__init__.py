"""API models package."""

from .blends import BlendExecuteRequest
from .comparisons import (
    ComparisonCreateRequest,
    ComparisonDeleteResponse,
    ComparisonRunResponse,
)
from .pricing import ModelPriceInfo, ProviderModelsResponse, ProvidersResponse

__all__ = [
    "BlendExecuteRequest",
    "ComparisonCreateRequest",
    "ComparisonDeleteResponse",
    "ComparisonRunResponse",
    "ModelPriceInfo",
    "ProviderModelsResponse",
    "ProvidersResponse",
]
