"""API usage metrics router."""

from fastapi import APIRouter, Query

from api.dependencies import AggregatorDep
from api.utils.error_handler import handle_api_operation
from modelviz.constants import RECENT_METRICS_LIMIT
from modelviz.log import get_logger
from modelviz.models import AggregatedMetrics, ApiCallMetric, MetricsFilter, TimeWindow
from modelviz.types import TimeRange

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/metrics", tags=["metrics"])


@router.get("", response_model=AggregatedMetrics)
async def get_metrics(
    aggregator: AggregatorDep,
    time_range: TimeRange = Query(default=TimeRange.TODAY, alias="range"),
) -> AggregatedMetrics:
    """Aggregated usage for a named time range (hour, today, week, ...)."""
    return aggregator.query(time_range)


@router.get("/window", response_model=AggregatedMetrics)
async def get_metrics_window(
    aggregator: AggregatorDep,
    start: int = Query(ge=0, description="Window start, epoch ms"),
    end: int = Query(ge=0, description="Window end, epoch ms"),
) -> AggregatedMetrics:
    return handle_api_operation(
        lambda: aggregator.query(TimeWindow(start=start, end=end)),
        error_message="Failed to aggregate metrics",
    )


@router.post("/filter", response_model=AggregatedMetrics)
async def filter_metrics(
    metrics_filter: MetricsFilter, aggregator: AggregatorDep
) -> AggregatedMetrics:
    return aggregator.query_filtered(metrics_filter)


@router.get("/recent", response_model=list[ApiCallMetric])
async def get_recent_metrics(
    aggregator: AggregatorDep,
    limit: int = Query(default=RECENT_METRICS_LIMIT, ge=1, le=1000),
) -> list[ApiCallMetric]:
    """Most recent call events, newest first."""
    return aggregator.get_recent_metrics(limit)
