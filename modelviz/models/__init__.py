"""Domain and persistence models."""

from .blend import (
    AggregationMetadata,
    AverageTokens,
    BlendedModelConfig,
    BlendExecutionRequest,
    BlendExecutionResult,
    BlendMetrics,
    BlendPerformanceStats,
    BlendSettings,
    ModelBlendEntry,
    ModelExecutionResult,
    ModelPerformance,
    ModelSettings,
    TokenTotals,
)
from .comparison import (
    CallMetrics,
    ComparisonAnalysis,
    ComparisonFilters,
    ComparisonModel,
    ComparisonResult,
    ComparisonSession,
    CostProjection,
    ExtremalMetrics,
    QualityMetrics,
    Rankings,
    Recommendations,
    ResponseDiff,
    SessionMetadata,
)
from .metrics import (
    AggregatedMetrics,
    ApiCallMetric,
    DailyStats,
    HourlyStats,
    MetricsFilter,
    ModelStats,
    ProviderStats,
    TimeWindow,
    make_model_key,
    split_model_key,
)
from .task import TaskRunnerStatus, TaskStats

__all__ = [
    "AggregatedMetrics",
    "AggregationMetadata",
    "ApiCallMetric",
    "AverageTokens",
    "BlendedModelConfig",
    "BlendExecutionRequest",
    "BlendExecutionResult",
    "BlendMetrics",
    "BlendPerformanceStats",
    "BlendSettings",
    "CallMetrics",
    "ComparisonAnalysis",
    "ComparisonFilters",
    "ComparisonModel",
    "ComparisonResult",
    "ComparisonSession",
    "CostProjection",
    "DailyStats",
    "ExtremalMetrics",
    "HourlyStats",
    "MetricsFilter",
    "ModelBlendEntry",
    "ModelExecutionResult",
    "ModelPerformance",
    "ModelSettings",
    "ModelStats",
    "ProviderStats",
    "QualityMetrics",
    "Rankings",
    "Recommendations",
    "ResponseDiff",
    "SessionMetadata",
    "TaskRunnerStatus",
    "TaskStats",
    "TimeWindow",
    "TokenTotals",
    "make_model_key",
    "split_model_key",
]
