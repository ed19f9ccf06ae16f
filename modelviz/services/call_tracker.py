"""Async context manager that turns one provider call into a result and a metric."""

import asyncio
import time
from types import TracebackType

from modelviz.constants import DEFAULT_CALL_TIMEOUT
from modelviz.exceptions import ProviderTimeoutError
from modelviz.log import get_logger
from modelviz.models.blend import ModelExecutionResult, ModelSettings
from modelviz.models.metrics import ApiCallMetric
from modelviz.pricing import calculate_cost, estimate_tokens
from modelviz.providers.base import ProviderAdapter, ProviderResponse
from modelviz.services.metrics_service import MetricsAggregator
from modelviz.types import CallStatus, InputFormat
from modelviz.utils import generate_id, now_ms

logger = get_logger(__name__)


class CallTracker:
    """Times a provider call and records its outcome exactly once.

    Exceptions raised inside the block are absorbed: a timeout becomes
    ``status=timeout`` and any other error ``status=error``. Cancellation
    records a ``status=error`` metric and then propagates; other
    ``BaseException``s propagate untouched.

    Usage::

        async with CallTracker(model_id, provider, prompt, aggregator=agg) as tracker:
            tracker.set_response(await adapter.call(...))
        result = tracker.result
    """

    def __init__(
        self,
        model_id: str,
        provider: str,
        prompt: str,
        system_prompt: str | None = None,
        aggregator: MetricsAggregator | None = None,
        input_format: InputFormat = InputFormat.TEXT,
        timeout: float | None = None,
    ):
        self.model_id = model_id
        self.provider = provider
        self.prompt = prompt
        self.system_prompt = system_prompt
        self.aggregator = aggregator
        self.input_format = input_format
        self.timeout = timeout
        self.response: ProviderResponse | None = None
        self._result: ModelExecutionResult | None = None
        self.metric: ApiCallMetric | None = None
        self.start_time = time.perf_counter()

    async def __aenter__(self) -> "CallTracker":
        self.start_time = time.perf_counter()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        latency_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None and issubclass(exc_type, asyncio.CancelledError):
            logger.warning(
                f"{self.provider}/{self.model_id} cancelled after {latency_ms:.0f}ms"
            )
            self._finish(
                self._failed_result(
                    latency_ms, CallStatus.ERROR, "Cancelled before completion"
                )
            )
            return False
        if exc_type is not None and not issubclass(exc_type, Exception):
            return False

        if self._is_timeout(exc_type, latency_ms):
            logger.warning(
                f"{self.provider}/{self.model_id} timed out after {latency_ms:.0f}ms"
            )
            result = self._failed_result(
                latency_ms, CallStatus.TIMEOUT, f"Timed out after {latency_ms:.0f}ms"
            )
        elif exc_type is None and self.response is not None:
            result = self._success_result(self.response, latency_ms)
        else:
            message = str(exc_val) if exc_val is not None else "No response received"
            logger.warning(f"{self.provider}/{self.model_id} failed: {message}")
            result = self._failed_result(latency_ms, CallStatus.ERROR, message)

        self._finish(result)
        return True

    def _finish(self, result: ModelExecutionResult) -> None:
        self._result = result
        self.metric = self._build_metric(result)
        if self.aggregator is not None:
            self.aggregator.record(self.metric)

    @property
    def result(self) -> ModelExecutionResult:
        if self._result is None:
            raise RuntimeError("Call has not completed yet")
        return self._result

    def set_response(self, response: ProviderResponse) -> None:
        self.response = response

    def _is_timeout(
        self, exc_type: type[BaseException] | None, latency_ms: float
    ) -> bool:
        if exc_type is not None and issubclass(
            exc_type, (TimeoutError, ProviderTimeoutError)
        ):
            return True
        # Any overrun of the deadline counts as a timeout, whatever the adapter said
        return self.timeout is not None and latency_ms >= self.timeout * 1000

    def _success_result(
        self, response: ProviderResponse, latency_ms: float
    ) -> ModelExecutionResult:
        text = response.text
        input_tokens = response.input_tokens
        if input_tokens is None:
            input_tokens = estimate_tokens((self.system_prompt or "") + self.prompt)
        output_tokens = response.output_tokens
        if output_tokens is None:
            output_tokens = estimate_tokens(text)
        cost = response.cost
        if cost is None:
            cost = calculate_cost(
                self.provider, self.model_id, input_tokens, output_tokens
            )

        return ModelExecutionResult(
            model_id=self.model_id,
            provider=self.provider,
            response=text,
            status=CallStatus.SUCCESS,
            latency_ms=latency_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=cost,
            timestamp=now_ms(),
        )

    def _failed_result(
        self, latency_ms: float, status: CallStatus, message: str
    ) -> ModelExecutionResult:
        return ModelExecutionResult(
            model_id=self.model_id,
            provider=self.provider,
            error=message,
            status=status,
            latency_ms=latency_ms,
            timestamp=now_ms(),
        )

    def _build_metric(self, result: ModelExecutionResult) -> ApiCallMetric:
        return ApiCallMetric(
            id=generate_id("metric"),
            timestamp=result.timestamp,
            provider=result.provider,
            model=result.model_id,
            input_format=self.input_format,
            latency=result.latency_ms,
            tokens_used=result.total_tokens,
            prompt_tokens=result.input_tokens,
            completion_tokens=result.output_tokens,
            status=result.status,
            error_message=result.error,
            estimated_cost=result.cost,
            prompt_length=len(self.system_prompt or "") + len(self.prompt),
            response_length=len(result.response or ""),
        )


async def execute_tracked_call(
    adapter: ProviderAdapter,
    model_id: str,
    provider: str,
    prompt: str,
    system_prompt: str | None = None,
    settings: ModelSettings | None = None,
    aggregator: MetricsAggregator | None = None,
    timeout: float = DEFAULT_CALL_TIMEOUT,
) -> ModelExecutionResult:
    """Call one model under a wall-clock timeout and record the outcome."""
    async with CallTracker(
        model_id,
        provider,
        prompt,
        system_prompt=system_prompt,
        aggregator=aggregator,
        timeout=timeout,
    ) as tracker:
        response = await asyncio.wait_for(
            adapter.call(model_id, provider, prompt, system_prompt, settings),
            timeout=timeout,
        )
        tracker.set_response(response)

    return tracker.result
