"""Call metric events and their aggregations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modelviz.types import CallStatus, InputFormat
from modelviz.utils import datetime_to_ms


class ApiCallMetric(BaseModel):
    """One completed provider call. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int = Field(ge=0, description="Completion time in epoch milliseconds")
    provider: str = Field(min_length=1)
    model: str = Field(min_length=1)
    input_format: InputFormat = InputFormat.TEXT

    latency: float = Field(ge=0.0, description="Call latency in milliseconds")
    tokens_used: int = Field(default=0, ge=0)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    status: CallStatus
    error_message: str | None = None

    estimated_cost: float = Field(default=0.0, ge=0.0, description="USD")

    prompt_length: int = Field(default=0, ge=0, description="Characters")
    response_length: int = Field(default=0, ge=0, description="Characters")
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, value: Any) -> Any:
        """Provider names are case-insensitive; store them lower-cased."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_success(self) -> bool:
        return self.status == CallStatus.SUCCESS

    @property
    def model_key(self) -> str:
        return make_model_key(self.provider, self.model)


def make_model_key(provider: str, model: str) -> str:
    """Key used by the per-model breakdown."""
    return f"{provider}:{model}"


def split_model_key(key: str) -> tuple[str, str]:
    """Inverse of ``make_model_key``; model names may themselves contain ':'."""
    provider, _, model = key.partition(":")
    return provider, model


class TimeWindow(BaseModel):
    """Custom query window in epoch milliseconds, inclusive on both ends."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "TimeWindow":
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")
        return self

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end


class ProviderStats(BaseModel):
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    success_rate: float = 0.0
    total_tokens: int = 0
    total_cost: float = 0.0
    avg_latency: float = 0.0
    avg_tokens_per_call: float = 0.0
    avg_cost_per_call: float = 0.0


class ModelStats(ProviderStats):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    p50_latency: float = 0.0
    p95_latency: float = 0.0
    p99_latency: float = 0.0


class HourlyStats(BaseModel):
    timestamp: int = Field(description="Start of the hour bucket in epoch ms")
    hour: int = Field(ge=0, le=23, description="UTC hour of day")
    calls: int
    tokens: int
    avg_latency: float
    total_cost: float
    success_rate: float
    cost_by_provider: dict[str, float] = Field(default_factory=dict)
    tokens_by_provider: dict[str, int] = Field(default_factory=dict)


class DailyStats(BaseModel):
    timestamp: int = Field(description="UTC midnight of the day in epoch ms")
    date: str = Field(description="UTC date as YYYY-MM-DD")
    calls: int
    tokens: int
    avg_latency: float
    total_cost: float
    success_rate: float
    cost_by_provider: dict[str, float] = Field(default_factory=dict)
    tokens_by_provider: dict[str, int] = Field(default_factory=dict)


class AggregatedMetrics(BaseModel):
    time_range: TimeWindow

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    success_rate: float = 0.0

    avg_latency: float = 0.0
    p50_latency: float = 0.0
    p95_latency: float = 0.0
    p99_latency: float = 0.0
    min_latency: float = 0.0
    max_latency: float = 0.0

    total_tokens: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    avg_tokens_per_call: float = 0.0

    total_cost: float = 0.0
    avg_cost_per_call: float = 0.0
    cost_by_provider: dict[str, float] = Field(default_factory=dict)

    by_provider: dict[str, ProviderStats] = Field(default_factory=dict)
    by_model: dict[str, ModelStats] = Field(default_factory=dict)

    hourly_stats: list[HourlyStats] = Field(default_factory=list)
    daily_stats: list[DailyStats] = Field(default_factory=list)


class MetricsFilter(BaseModel):
    """Conjunctive filter over recorded call metrics."""

    providers: list[str] | None = None
    models: list[str] | None = None
    status: list[CallStatus] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_latency: float | None = None
    max_latency: float | None = None
    min_cost: float | None = None
    max_cost: float | None = None

    @field_validator("providers")
    @classmethod
    def normalize_providers(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [provider.strip().lower() for provider in value]

    def matches(self, metric: ApiCallMetric) -> bool:
        if self.providers is not None and metric.provider not in self.providers:
            return False
        if self.models is not None and metric.model not in self.models:
            return False
        if self.status is not None and metric.status not in self.status:
            return False
        if self.start_date is not None and metric.timestamp < datetime_to_ms(
            self.start_date
        ):
            return False
        if self.end_date is not None and metric.timestamp > datetime_to_ms(
            self.end_date
        ):
            return False
        if self.min_latency is not None and metric.latency < self.min_latency:
            return False
        if self.max_latency is not None and metric.latency > self.max_latency:
            return False
        if self.min_cost is not None and metric.estimated_cost < self.min_cost:
            return False
        if self.max_cost is not None and metric.estimated_cost > self.max_cost:
            return False
        return True
