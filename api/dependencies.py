"""FastAPI dependencies reading services from app state."""

from typing import Annotated

from fastapi import Depends, Request

from modelviz.log import get_logger
from modelviz.services import ComparisonService, MetricsAggregator, ModelBlendService

logger = get_logger(__name__)


def get_metrics_aggregator(request: Request) -> MetricsAggregator:
    aggregator: MetricsAggregator = request.app.state.metrics_aggregator
    return aggregator


def get_blend_service(request: Request) -> ModelBlendService:
    service: ModelBlendService = request.app.state.blend_service
    return service


def get_comparison_service(request: Request) -> ComparisonService:
    service: ComparisonService = request.app.state.comparison_service
    return service


AggregatorDep = Annotated[MetricsAggregator, Depends(get_metrics_aggregator)]
BlendServiceDep = Annotated[ModelBlendService, Depends(get_blend_service)]
ComparisonServiceDep = Annotated[ComparisonService, Depends(get_comparison_service)]
