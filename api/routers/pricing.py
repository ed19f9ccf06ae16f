"""Pricing table router."""

from fastapi import APIRouter, HTTPException, status

from api.models import ModelPriceInfo, ProviderModelsResponse, ProvidersResponse
from modelviz.pricing import (
    get_available_providers,
    get_model_pricing,
    get_provider_models,
)

router = APIRouter(prefix="/v1/pricing", tags=["pricing"])


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers() -> ProvidersResponse:
    providers = get_available_providers()
    return ProvidersResponse(providers=providers, count=len(providers))


@router.get("/{provider}/models", response_model=ProviderModelsResponse)
async def list_provider_models(provider: str) -> ProviderModelsResponse:
    models = get_provider_models(provider)
    if not models:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pricing known for provider {provider}",
        )

    prices = []
    for model in models:
        pricing = get_model_pricing(provider, model)
        if pricing is not None:
            prices.append(
                ModelPriceInfo(model=model, input=pricing.input, output=pricing.output)
            )
    return ProviderModelsResponse(provider=provider, models=prices)
