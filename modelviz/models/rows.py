"""SQLModel tables backing the metrics log and saved comparisons."""

from sqlmodel import Field, Index, SQLModel

from modelviz.models.comparison import ComparisonSession
from modelviz.models.metrics import ApiCallMetric
from modelviz.types import CallStatus, InputFormat
from modelviz.utils import now_ms


class StoredCallMetric(SQLModel, table=True):
    """Durable copy of an ``ApiCallMetric``."""

    row_id: int | None = Field(default=None, primary_key=True)
    metric_id: str = Field(unique=True, index=True, description="Metric identifier")
    timestamp: int = Field(description="Completion time in epoch milliseconds")
    provider: str = Field(description="Provider name")
    model: str = Field(description="Model identifier")
    input_format: InputFormat = Field(default=InputFormat.TEXT)
    latency: float = Field(ge=0.0, description="Latency in milliseconds")
    tokens_used: int = Field(default=0, ge=0)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    status: CallStatus = Field(description="success, error or timeout")
    error_message: str | None = Field(default=None)
    estimated_cost: float = Field(default=0.0, ge=0.0, description="USD")
    prompt_length: int = Field(default=0, ge=0)
    response_length: int = Field(default=0, ge=0)
    confidence: float | None = Field(default=None)

    __table_args__ = (
        Index("idx_call_metric_timestamp", "timestamp"),
        Index("idx_call_metric_provider", "provider"),
    )

    @classmethod
    def from_metric(cls, metric: ApiCallMetric) -> "StoredCallMetric":
        data = metric.model_dump()
        data["metric_id"] = data.pop("id")
        return cls(**data)

    def to_metric(self) -> ApiCallMetric:
        data = self.model_dump(exclude={"row_id", "metric_id"})
        return ApiCallMetric(id=self.metric_id, **data)


class StoredComparisonSession(SQLModel, table=True):
    """A saved comparison session serialized as JSON."""

    session_id: str = Field(primary_key=True, description="Session identifier")
    name: str = Field(description="Session name")
    created: int = Field(index=True, description="Creation time in epoch ms")
    saved_at: int = Field(default_factory=now_ms, description="Last save in epoch ms")
    payload: str = Field(description="ComparisonSession as JSON")

    @classmethod
    def from_session(cls, session: ComparisonSession) -> "StoredComparisonSession":
        return cls(
            session_id=session.id,
            name=session.name,
            created=session.metadata.created,
            payload=session.model_dump_json(),
        )

    def to_session(self) -> ComparisonSession:
        return ComparisonSession.model_validate_json(self.payload)
