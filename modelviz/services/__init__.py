"""Model blending, comparison and metrics services."""

from .aggregation import AggregationOutcome, aggregate
from .blend_service import ModelBlendService, validate_blend_config
from .call_tracker import CallTracker, execute_tracked_call
from .comparison_service import ComparisonService
from .metrics_cleanup import MetricsCleanupTask
from .metrics_service import MetricsAggregator, aggregate_metrics
from .quality_scorer import HeuristicQualityScorer, QualityScorer

__all__ = [
    "AggregationOutcome",
    "CallTracker",
    "ComparisonService",
    "HeuristicQualityScorer",
    "MetricsAggregator",
    "MetricsCleanupTask",
    "ModelBlendService",
    "QualityScorer",
    "aggregate",
    "aggregate_metrics",
    "execute_tracked_call",
    "validate_blend_config",
]
