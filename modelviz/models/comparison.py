"""Comparison session, result and analysis models."""

from pydantic import BaseModel, Field

from modelviz.models.blend import ModelSettings, TokenTotals
from modelviz.types import CallStatus


class ComparisonModel(BaseModel):
    """A model taking part in a comparison."""

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    name: str
    version: str | None = None
    settings: ModelSettings | None = None


class CallMetrics(BaseModel):
    latency: float = Field(ge=0.0, description="Call latency in ms")
    tokens: TokenTotals = Field(default_factory=TokenTotals)
    cost: float = Field(default=0.0, ge=0.0)
    timestamp: int


class QualityMetrics(BaseModel):
    """Heuristic quality scores in ``[0, 1]``."""

    coherence: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    completeness: float = Field(ge=0.0, le=1.0)
    accuracy: float | None = Field(default=None, ge=0.0, le=1.0)

    @property
    def score(self) -> float:
        """Scalar quality; accuracy counts double when present."""
        total = self.coherence + self.relevance + self.completeness
        if self.accuracy is None:
            return total / 3
        return (total + 2 * self.accuracy) / 5


class ComparisonResult(BaseModel):
    session_id: str
    model_id: str
    provider: str
    model_name: str
    response: str | None = None
    error: str | None = None
    status: CallStatus
    metrics: CallMetrics
    quality_metrics: QualityMetrics | None = None

    @property
    def is_success(self) -> bool:
        return self.status == CallStatus.SUCCESS

    @property
    def quality_score(self) -> float | None:
        return self.quality_metrics.score if self.quality_metrics else None


class SessionMetadata(BaseModel):
    created: int
    completed: int | None = None
    saved: bool = False
    tags: list[str] = Field(default_factory=list)


class ComparisonSession(BaseModel):
    """A prompt compared across a set of models.

    Mutable until ``metadata.completed`` is set.
    """

    id: str
    name: str
    description: str | None = None
    prompt: str
    system_prompt: str | None = None
    models: list[ComparisonModel]
    results: list[ComparisonResult] | None = None
    metadata: SessionMetadata

    @property
    def is_completed(self) -> bool:
        return self.metadata.completed is not None


class Rankings(BaseModel):
    speed: list[str]
    cost: list[str]
    quality: list[str]
    overall: list[str]


class FastestMetric(BaseModel):
    model_id: str
    latency: float


class CheapestMetric(BaseModel):
    model_id: str
    cost: float


class HighestQualityMetric(BaseModel):
    model_id: str
    score: float


class ExtremalMetrics(BaseModel):
    fastest: FastestMetric
    cheapest: CheapestMetric
    highest_quality: HighestQualityMetric


class Recommendations(BaseModel):
    best_overall: str
    best_value: str
    fastest_acceptable: str


class CostProjection(BaseModel):
    per_1000_calls: dict[str, float]
    per_1m_tokens: dict[str, float]


class ComparisonAnalysis(BaseModel):
    session_id: str
    rankings: Rankings
    metrics: ExtremalMetrics
    recommendations: Recommendations
    cost_projection: CostProjection
    overall_scores: dict[str, float] = Field(default_factory=dict)


class ComparisonFilters(BaseModel):
    """Criteria for narrowing the results of a session."""

    providers: list[str] | None = None
    models: list[str] | None = None
    max_cost: float | None = None
    max_latency: float | None = None
    min_quality: float | None = None


class ResponseDiff(BaseModel):
    """Word-level differences between two model responses."""

    model_a: str
    model_b: str
    similarity: float = Field(ge=0.0, le=1.0)
    additions: list[str] = Field(default_factory=list)
    deletions: list[str] = Field(default_factory=list)
