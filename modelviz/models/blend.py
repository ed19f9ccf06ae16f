"""Blend configuration and execution result models."""

from pydantic import BaseModel, ConfigDict, Field

from modelviz.types import AggregationStrategy, CallStatus


class ModelSettings(BaseModel):
    """Sampling settings passed to a provider."""

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)

    def merged_over(self, base: "ModelSettings") -> "ModelSettings":
        """Return ``base`` with every value set here taking precedence."""
        fields = set(ModelSettings.model_fields)
        values = base.model_dump(include=fields)
        values.update(self.model_dump(include=fields, exclude_none=True))
        return ModelSettings(**values)


class BlendSettings(ModelSettings):
    """Blend-wide defaults."""

    stream: bool = False


class ModelBlendEntry(BaseModel):
    """One model participating in a blend."""

    model_id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    weight: float = Field(ge=0.0, le=100.0)
    settings: ModelSettings = Field(default_factory=ModelSettings)


class BlendedModelConfig(BaseModel):
    """A named blend of one to three weighted models.

    Count and weight-sum rules are enforced by the blend service so that
    violations surface as ``InvalidConfigError`` rather than pydantic errors.
    """

    id: str
    name: str
    description: str | None = None
    models: list[ModelBlendEntry]
    aggregation_strategy: AggregationStrategy = AggregationStrategy.WEIGHTED
    settings: BlendSettings = Field(default_factory=BlendSettings)

    @property
    def total_weight(self) -> float:
        return sum(entry.weight for entry in self.models)

    def weight_of(self, model_id: str) -> float:
        for entry in self.models:
            if entry.model_id == model_id:
                return entry.weight
        return 0.0


class BlendExecutionRequest(BaseModel):
    """Prompt and optional per-request setting overrides for a blend run."""

    blend_id: str
    prompt: str
    system_prompt: str | None = None
    settings: ModelSettings | None = None


class ModelExecutionResult(BaseModel):
    """Outcome of one model call inside a blend or comparison."""

    model_config = ConfigDict(frozen=True)

    model_id: str
    provider: str
    response: str | None = None
    error: str | None = None
    status: CallStatus
    latency_ms: float = Field(ge=0.0)
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    timestamp: int = Field(description="Completion time in epoch milliseconds")

    @property
    def is_success(self) -> bool:
        return self.status == CallStatus.SUCCESS

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class AggregationMetadata(BaseModel):
    strategy: AggregationStrategy
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    reasoning: str | None = None
    selected_model_id: str | None = None


class TokenTotals(BaseModel):
    input: int = 0
    output: int = 0


class AverageTokens(BaseModel):
    input: float = 0.0
    output: float = 0.0


class BlendMetrics(BaseModel):
    total_latency: float = Field(description="Wall-clock latency of the blend in ms")
    total_cost: float
    total_tokens: TokenTotals


class BlendExecutionResult(BaseModel):
    """Result of a blend run; ``results`` is in completion order."""

    blend_id: str
    request: BlendExecutionRequest
    results: list[ModelExecutionResult]
    aggregated_response: str
    aggregation_metadata: AggregationMetadata
    metrics: BlendMetrics
    timestamp: int


class ModelPerformance(BaseModel):
    executions: int = 0
    success_rate: float = 0.0
    avg_latency: float = 0.0
    avg_cost: float = 0.0


class BlendPerformanceStats(BaseModel):
    """Running statistics of all executions of one blend."""

    blend_id: str
    total_executions: int = 0
    success_rate: float = 0.0
    avg_latency: float = 0.0
    avg_cost: float = 0.0
    avg_tokens: AverageTokens = Field(default_factory=AverageTokens)
    model_performance: dict[str, ModelPerformance] = Field(default_factory=dict)
    last_updated: int | None = None
