"""Common API endpoints router."""

import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from modelviz import get_logger
from modelviz.config import load_settings

logger = get_logger(__name__)

router = APIRouter(tags=["common"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    current_settings = load_settings()
    return HealthResponse(
        status="healthy",
        version=current_settings.api_version,
        environment=current_settings.environment.value,
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
    )
