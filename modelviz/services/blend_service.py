"""Execute blended model configurations."""

import asyncio
import math
import time

from modelviz.constants import (
    DEFAULT_CALL_TIMEOUT,
    MAX_BLEND_MODELS,
    TOTAL_WEIGHT,
    WEIGHT_TOLERANCE,
)
from modelviz.exceptions import AggregationFailedError, InvalidConfigError
from modelviz.log import get_logger
from modelviz.models.blend import (
    AggregationMetadata,
    BlendedModelConfig,
    BlendExecutionRequest,
    BlendExecutionResult,
    BlendMetrics,
    BlendPerformanceStats,
    ModelBlendEntry,
    ModelExecutionResult,
    ModelPerformance,
    ModelSettings,
    TokenTotals,
)
from modelviz.providers.base import ProviderAdapter
from modelviz.services.aggregation import aggregate
from modelviz.services.call_tracker import execute_tracked_call
from modelviz.services.metrics_service import MetricsAggregator
from modelviz.types import AggregationStrategy
from modelviz.utils import now_ms

logger = get_logger(__name__)


def validate_blend_config(config: BlendedModelConfig, prompt: str) -> None:
    """Reject a blend before any provider is called.

    Raises:
        InvalidConfigError: on an empty prompt, a model count outside
            ``1..MAX_BLEND_MODELS``, duplicate model ids, or weights that
            do not sum to 100 (within ``WEIGHT_TOLERANCE``)
    """
    if not prompt.strip():
        raise InvalidConfigError("Prompt must not be empty")

    count = len(config.models)
    if not 1 <= count <= MAX_BLEND_MODELS:
        raise InvalidConfigError(
            f"Blend must have between 1 and {MAX_BLEND_MODELS} models, got {count}"
        )

    model_ids = [entry.model_id for entry in config.models]
    if len(set(model_ids)) != len(model_ids):
        raise InvalidConfigError(f"Duplicate model ids in blend: {model_ids}")

    total = config.total_weight
    if not math.isclose(total, TOTAL_WEIGHT, abs_tol=WEIGHT_TOLERANCE):
        raise InvalidConfigError(
            f"Model weights must sum to {TOTAL_WEIGHT:g}, got {total:g}"
        )


class ModelBlendService:
    """Fans a prompt out to the models of a blend and merges their answers.

    Every call attempt is recorded to the metrics aggregator exactly once,
    in completion order, whatever the outcome of the blend.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        aggregator: MetricsAggregator,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        self.adapter = adapter
        self.aggregator = aggregator
        self.call_timeout = call_timeout
        self._pending: set[asyncio.Task[ModelExecutionResult]] = set()
        self._stats: dict[str, BlendPerformanceStats] = {}

        logger.info(f"Initialized {self.__class__.__name__} with {call_timeout=}")

    async def execute_blend(
        self,
        config: BlendedModelConfig,
        prompt: str,
        system_prompt: str | None = None,
        settings: ModelSettings | None = None,
    ) -> BlendExecutionResult:
        """Run one blend.

        Raises:
            InvalidConfigError: before any call when the config is invalid
            AggregationFailedError: when every call errored or timed out
        """
        validate_blend_config(config, prompt)

        request = BlendExecutionRequest(
            blend_id=config.id,
            prompt=prompt,
            system_prompt=system_prompt,
            settings=settings,
        )
        logger.info(
            f"Executing blend {config.id} with {len(config.models)} models "
            f"strategy={config.aggregation_strategy.value}"
        )

        start = time.perf_counter()
        tasks = [
            asyncio.create_task(self._call_entry(entry, config, request))
            for entry in config.models
        ]
        stop_early = config.aggregation_strategy == AggregationStrategy.FIRST_SUCCESS
        results = await self._collect(tasks, stop_at_first_success=stop_early)
        total_latency = (time.perf_counter() - start) * 1000

        try:
            outcome = aggregate(results, config)
        except AggregationFailedError:
            self._update_stats(config.id, results, total_latency, succeeded=False)
            logger.error(f"Blend {config.id} failed: no model succeeded")
            raise

        metrics = BlendMetrics(
            total_latency=total_latency,
            total_cost=sum(result.cost for result in results),
            total_tokens=TokenTotals(
                input=sum(result.input_tokens for result in results),
                output=sum(result.output_tokens for result in results),
            ),
        )
        self._update_stats(config.id, results, total_latency, succeeded=True)

        logger.info(
            f"Blend {config.id} selected {outcome.selected.model_id} "
            f"in {total_latency:.0f}ms"
        )
        return BlendExecutionResult(
            blend_id=config.id,
            request=request,
            results=results,
            aggregated_response=outcome.selected.response or "",
            aggregation_metadata=AggregationMetadata(
                strategy=config.aggregation_strategy,
                confidence=outcome.confidence,
                reasoning=outcome.reasoning,
                selected_model_id=outcome.selected.model_id,
            ),
            metrics=metrics,
            timestamp=now_ms(),
        )

    async def _call_entry(
        self,
        entry: ModelBlendEntry,
        config: BlendedModelConfig,
        request: BlendExecutionRequest,
    ) -> ModelExecutionResult:
        # entry settings > request settings > blend settings
        effective: ModelSettings = config.settings
        if request.settings is not None:
            effective = request.settings.merged_over(effective)
        effective = entry.settings.merged_over(effective)

        return await execute_tracked_call(
            self.adapter,
            entry.model_id,
            entry.provider,
            request.prompt,
            system_prompt=request.system_prompt,
            settings=effective,
            aggregator=self.aggregator,
            timeout=self.call_timeout,
        )

    async def _collect(
        self,
        tasks: list[asyncio.Task[ModelExecutionResult]],
        stop_at_first_success: bool,
    ) -> list[ModelExecutionResult]:
        """Gather results in completion order.

        With ``stop_at_first_success`` the remaining calls keep running in the
        background; their metrics are recorded when they finish.
        """
        results: list[ModelExecutionResult] = []
        for next_done in asyncio.as_completed(tasks):
            result = await next_done
            results.append(result)
            if stop_at_first_success and result.is_success:
                break

        for task in tasks:
            if not task.done():
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

        if self._pending:
            logger.debug(f"{len(self._pending)} blend calls still in flight")
        return results

    async def wait_for_pending(self) -> None:
        """Wait for calls left running by first-success blends."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def cancel_pending(self) -> None:
        """Cancel calls left running by first-success blends.

        Each cancelled call still records an error metric.
        """
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"Cancelled {len(pending)} in-flight blend calls")

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def get_blend_stats(self, blend_id: str) -> BlendPerformanceStats | None:
        return self._stats.get(blend_id)

    def _update_stats(
        self,
        blend_id: str,
        results: list[ModelExecutionResult],
        total_latency: float,
        succeeded: bool,
    ) -> None:
        stats = self._stats.setdefault(
            blend_id, BlendPerformanceStats(blend_id=blend_id)
        )
        n = stats.total_executions + 1

        def running(previous: float, value: float, count: int) -> float:
            return previous + (value - previous) / count

        stats.total_executions = n
        stats.success_rate = running(stats.success_rate, float(succeeded), n)
        stats.avg_latency = running(stats.avg_latency, total_latency, n)
        stats.avg_cost = running(stats.avg_cost, sum(r.cost for r in results), n)
        stats.avg_tokens.input = running(
            stats.avg_tokens.input, sum(r.input_tokens for r in results), n
        )
        stats.avg_tokens.output = running(
            stats.avg_tokens.output, sum(r.output_tokens for r in results), n
        )

        for result in results:
            perf = stats.model_performance.setdefault(
                result.model_id, ModelPerformance()
            )
            m = perf.executions + 1
            perf.executions = m
            perf.success_rate = running(perf.success_rate, float(result.is_success), m)
            perf.avg_latency = running(perf.avg_latency, result.latency_ms, m)
            perf.avg_cost = running(perf.avg_cost, result.cost, m)

        stats.last_updated = now_ms()
