"""Metrics aggregator: the append-only log of provider call outcomes."""

import threading
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from modelviz.constants import (
    COST_PRECISION,
    DAY_MS,
    HOUR_MS,
    METRICS_RETENTION_DAYS,
    RECENT_METRICS_LIMIT,
)
from modelviz.database.repository import CallMetricRepository
from modelviz.log import get_logger
from modelviz.models.metrics import (
    AggregatedMetrics,
    ApiCallMetric,
    DailyStats,
    HourlyStats,
    MetricsFilter,
    ModelStats,
    ProviderStats,
    TimeWindow,
)
from modelviz.types import TimeRange
from modelviz.utils import (
    datetime_to_ms,
    generate_id,
    ms_to_datetime,
    nearest_rank,
    now_ms,
)

logger = get_logger(__name__)

MetricSubscriber = Callable[[ApiCallMetric], None]

# Rolling window lengths for the named ranges other than "today" and "all"
RANGE_SPANS_MS: dict[TimeRange, int] = {
    TimeRange.HOUR: HOUR_MS,
    TimeRange.WEEK: 7 * DAY_MS,
    TimeRange.MONTH: 30 * DAY_MS,
    TimeRange.YEAR: 365 * DAY_MS,
}


class MetricsAggregator:
    """Owns the call-metric log and answers aggregate queries over it.

    Appends are serialized by a lock; queries copy a snapshot under the lock
    and aggregate outside it, so ``record`` and ``query`` may be called from
    any number of concurrent blend or comparison executions.

    When an engine is given, every recorded metric is also written to the
    ``storedcallmetric`` table. Storage failures are logged and never reach
    the caller.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        retention_days: int = METRICS_RETENTION_DAYS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._engine = engine
        self._retention_days = retention_days
        self._clock = clock
        self._events: list[ApiCallMetric] = []
        self._lock = threading.Lock()
        self._subscribers: list[MetricSubscriber] = []

        logger.info(
            f"Initialized {self.__class__.__name__} "
            f"with persistence={engine is not None}, {retention_days=}"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    # Ingestion

    def record(
        self, event: ApiCallMetric | Mapping[str, Any]
    ) -> ApiCallMetric | None:
        """Append one event; malformed events are dropped with a warning.

        Mappings are validated into an ``ApiCallMetric`` and get an id
        generated when they have none.
        """
        metric = self._coerce(event)
        if metric is None:
            return None

        with self._lock:
            self._events.append(metric)

        self._persist(metric)
        self._notify(metric)
        return metric

    def subscribe(self, callback: MetricSubscriber) -> Callable[[], None]:
        """Call ``callback`` after every successful ``record``.

        Returns a function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _coerce(self, event: Any) -> ApiCallMetric | None:
        if isinstance(event, ApiCallMetric):
            return event

        if not isinstance(event, Mapping):
            logger.warning(f"Dropping metric event of type {type(event).__name__}")
            return None

        data = dict(event)
        data.setdefault("id", generate_id("metric"))
        fields = sorted(map(str, data))
        try:
            return ApiCallMetric.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"Dropping malformed metric event: {e.error_count()} errors, "
                f"{fields=}"
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed metric event: {e}, {fields=}")
        return None

    def _persist(self, metric: ApiCallMetric) -> None:
        if self._engine is None:
            return
        try:
            with Session(self._engine) as session:
                CallMetricRepository(session).save_metric(metric)
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist metric {metric.id}: {e}")

    def _notify(self, metric: ApiCallMetric) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(metric)
            except Exception as e:
                logger.error(f"Metric subscriber {callback!r} failed: {e}")

    # Queries

    def snapshot(self) -> tuple[ApiCallMetric, ...]:
        """Immutable copy of the log in append order."""
        with self._lock:
            return tuple(self._events)

    def resolve_window(self, time_range: TimeRange | TimeWindow) -> TimeWindow:
        """Translate a named range into concrete epoch-ms bounds."""
        if isinstance(time_range, TimeWindow):
            return time_range

        now = self._clock()
        if time_range == TimeRange.TODAY:
            midnight = ms_to_datetime(now).replace(
                hour=0, minute=0, second=0, microsecond=0
            )
            return TimeWindow(start=datetime_to_ms(midnight), end=now)

        if time_range == TimeRange.ALL:
            timestamps = [metric.timestamp for metric in self.snapshot()]
            if not timestamps:
                return TimeWindow(start=0, end=0)
            return TimeWindow(start=min(timestamps), end=max(timestamps))

        return TimeWindow(start=max(now - RANGE_SPANS_MS[time_range], 0), end=now)

    def query(
        self, time_range: TimeRange | TimeWindow = TimeRange.TODAY
    ) -> AggregatedMetrics:
        """Aggregate every event whose timestamp falls inside the range."""
        window = self.resolve_window(time_range)
        events = [m for m in self.snapshot() if window.contains(m.timestamp)]
        return aggregate_metrics(events, window)

    def query_filtered(self, metrics_filter: MetricsFilter) -> AggregatedMetrics:
        """Aggregate the events matching every predicate of the filter."""
        events = [m for m in self.snapshot() if metrics_filter.matches(m)]

        start = (
            datetime_to_ms(metrics_filter.start_date)
            if metrics_filter.start_date
            else min((m.timestamp for m in events), default=0)
        )
        end = (
            datetime_to_ms(metrics_filter.end_date)
            if metrics_filter.end_date
            else max((m.timestamp for m in events), default=start)
        )
        return aggregate_metrics(events, TimeWindow(start=start, end=max(start, end)))

    def get_recent_metrics(
        self, limit: int = RECENT_METRICS_LIMIT
    ) -> list[ApiCallMetric]:
        """Newest events first."""
        events = sorted(self.snapshot(), key=lambda m: m.timestamp, reverse=True)
        return events[:limit]

    def get_all_metrics(self) -> list[ApiCallMetric]:
        return list(self.snapshot())

    # Maintenance

    def cleanup_old_data(self) -> int:
        """Drop events older than the retention period; returns how many."""
        cutoff = self._clock() - self._retention_days * DAY_MS
        with self._lock:
            kept = [metric for metric in self._events if metric.timestamp >= cutoff]
            removed = len(self._events) - len(kept)
            self._events = kept

        if self._engine is not None:
            try:
                with Session(self._engine) as session:
                    CallMetricRepository(session).delete_older_than(cutoff)
            except SQLAlchemyError as e:
                logger.error(f"Failed to delete stored metrics before {cutoff}: {e}")

        logger.info(
            f"Removed {removed} metrics older than {self._retention_days} days"
        )
        return removed

    def clear_all(self) -> None:
        """Forget every recorded event, including stored ones."""
        with self._lock:
            self._events = []

        if self._engine is not None:
            try:
                with Session(self._engine) as session:
                    CallMetricRepository(session).delete_all()
            except SQLAlchemyError as e:
                logger.error(f"Failed to clear stored metrics: {e}")

        logger.warning("All metrics cleared")

    def load_from_store(self) -> int:
        """Replace the in-memory log with the stored events."""
        if self._engine is None:
            return 0

        with Session(self._engine) as session:
            stored = CallMetricRepository(session).get_all_metrics()

        with self._lock:
            self._events = stored

        logger.info(f"Loaded {len(stored)} stored metrics")
        return len(stored)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _ratio(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


def _success_latencies(events: Iterable[ApiCallMetric]) -> list[float]:
    return sorted(metric.latency for metric in events if metric.is_success)


def _provider_breakdown(
    events: list[ApiCallMetric],
) -> tuple[dict[str, float], dict[str, int]]:
    cost: dict[str, float] = defaultdict(float)
    tokens: dict[str, int] = defaultdict(int)
    for metric in events:
        cost[metric.provider] += metric.estimated_cost
        tokens[metric.provider] += metric.tokens_used
    return (
        {name: round(value, COST_PRECISION) for name, value in cost.items()},
        dict(tokens),
    )


def _group_stats(events: list[ApiCallMetric]) -> dict[str, Any]:
    """Counters shared by ProviderStats and ModelStats."""
    total_calls = len(events)
    successful_calls = sum(1 for metric in events if metric.is_success)
    total_tokens = sum(metric.tokens_used for metric in events)
    total_cost = sum(metric.estimated_cost for metric in events)
    return {
        "total_calls": total_calls,
        "successful_calls": successful_calls,
        "failed_calls": total_calls - successful_calls,
        "success_rate": _ratio(successful_calls, total_calls),
        "total_tokens": total_tokens,
        "total_cost": round(total_cost, COST_PRECISION),
        "avg_latency": _mean(_success_latencies(events)),
        "avg_tokens_per_call": total_tokens / total_calls if total_calls else 0.0,
        "avg_cost_per_call": total_cost / total_calls if total_calls else 0.0,
    }


def _group_by(
    events: list[ApiCallMetric], key: Callable[[ApiCallMetric], Any]
) -> dict[Any, list[ApiCallMetric]]:
    grouped: dict[Any, list[ApiCallMetric]] = defaultdict(list)
    for metric in events:
        grouped[key(metric)].append(metric)
    return dict(grouped)


def _hourly_stats(events: list[ApiCallMetric]) -> list[HourlyStats]:
    stats = []
    buckets = _group_by(events, lambda metric: metric.timestamp // HOUR_MS)
    for bucket in sorted(buckets):
        bucket_events = buckets[bucket]
        group = _group_stats(bucket_events)
        cost_by_provider, tokens_by_provider = _provider_breakdown(bucket_events)
        start = bucket * HOUR_MS
        stats.append(
            HourlyStats(
                timestamp=start,
                hour=ms_to_datetime(start).hour,
                calls=group["total_calls"],
                tokens=group["total_tokens"],
                avg_latency=group["avg_latency"],
                total_cost=group["total_cost"],
                success_rate=group["success_rate"],
                cost_by_provider=cost_by_provider,
                tokens_by_provider=tokens_by_provider,
            )
        )
    return stats


def _daily_stats(events: list[ApiCallMetric]) -> list[DailyStats]:
    stats = []
    buckets = _group_by(events, lambda metric: ms_to_datetime(metric.timestamp).date())
    for day in sorted(buckets):
        bucket_events = buckets[day]
        group = _group_stats(bucket_events)
        cost_by_provider, tokens_by_provider = _provider_breakdown(bucket_events)
        midnight = datetime(day.year, day.month, day.day, tzinfo=UTC)
        stats.append(
            DailyStats(
                timestamp=datetime_to_ms(midnight),
                date=day.isoformat(),
                calls=group["total_calls"],
                tokens=group["total_tokens"],
                avg_latency=group["avg_latency"],
                total_cost=group["total_cost"],
                success_rate=group["success_rate"],
                cost_by_provider=cost_by_provider,
                tokens_by_provider=tokens_by_provider,
            )
        )
    return stats


def aggregate_metrics(
    events: list[ApiCallMetric], window: TimeWindow
) -> AggregatedMetrics:
    """Pure aggregation of a set of events.

    Latency statistics (mean, min, max, percentiles) only consider successful
    calls; errors and timeouts still count towards totals and the success
    rate. The result does not depend on the order of ``events``.
    """
    if not events:
        return AggregatedMetrics(time_range=window)

    # Canonical order keeps float sums identical however the log was appended
    events = sorted(events, key=lambda metric: (metric.timestamp, metric.id))

    overall = _group_stats(events)
    latencies = _success_latencies(events)
    total_calls = overall["total_calls"]
    cost_by_provider, _ = _provider_breakdown(events)

    by_provider = {
        provider: ProviderStats(**_group_stats(group))
        for provider, group in sorted(_group_by(events, lambda m: m.provider).items())
    }

    by_model = {}
    for model_key, group in sorted(_group_by(events, lambda m: m.model_key).items()):
        model_latencies = _success_latencies(group)
        by_model[model_key] = ModelStats(
            **_group_stats(group),
            prompt_tokens=sum(metric.prompt_tokens for metric in group),
            completion_tokens=sum(metric.completion_tokens for metric in group),
            p50_latency=nearest_rank(model_latencies, 0.50),
            p95_latency=nearest_rank(model_latencies, 0.95),
            p99_latency=nearest_rank(model_latencies, 0.99),
        )

    return AggregatedMetrics(
        time_range=window,
        total_calls=total_calls,
        successful_calls=overall["successful_calls"],
        failed_calls=overall["failed_calls"],
        success_rate=overall["success_rate"],
        avg_latency=overall["avg_latency"],
        p50_latency=nearest_rank(latencies, 0.50),
        p95_latency=nearest_rank(latencies, 0.95),
        p99_latency=nearest_rank(latencies, 0.99),
        min_latency=latencies[0] if latencies else 0.0,
        max_latency=latencies[-1] if latencies else 0.0,
        total_tokens=overall["total_tokens"],
        total_prompt_tokens=sum(metric.prompt_tokens for metric in events),
        total_completion_tokens=sum(metric.completion_tokens for metric in events),
        avg_tokens_per_call=overall["avg_tokens_per_call"],
        total_cost=overall["total_cost"],
        avg_cost_per_call=overall["avg_cost_per_call"],
        cost_by_provider=cost_by_provider,
        by_provider=by_provider,
        by_model=by_model,
        hourly_stats=_hourly_stats(events),
        daily_stats=_daily_stats(events),
    )
