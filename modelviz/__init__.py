"""Multi-model blending, comparison and API usage metrics."""

from .config import Settings, settings
from .log import (
    get_logger,
    setup_logging,
    setup_test_logging,
)
from .services import (
    ComparisonService,
    MetricsAggregator,
    ModelBlendService,
)
from .types import AggregationStrategy, Environment

__all__ = [
    "AggregationStrategy",
    "Environment",
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
    "setup_test_logging",
    "ComparisonService",
    "MetricsAggregator",
    "ModelBlendService",
]
