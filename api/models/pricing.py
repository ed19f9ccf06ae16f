"""Response models for pricing endpoints."""

from pydantic import BaseModel


class ProvidersResponse(BaseModel):
    providers: list[str]
    count: int


class ModelPriceInfo(BaseModel):
    """Prices in USD per 1K tokens."""

    model: str
    input: float
    output: float


class ProviderModelsResponse(BaseModel):
    provider: str
    models: list[ModelPriceInfo]
