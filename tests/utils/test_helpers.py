"""Test helper utilities for modelviz tests."""

import asyncio
from dataclasses import dataclass, field

from modelviz.exceptions import ProviderError
from modelviz.models import (
    ApiCallMetric,
    BlendedModelConfig,
    CallMetrics,
    ComparisonResult,
    ModelBlendEntry,
    ModelSettings,
    QualityMetrics,
    TokenTotals,
)
from modelviz.providers import ProviderAdapter, ProviderResponse
from modelviz.types import AggregationStrategy, CallStatus, InputFormat


@dataclass
class ScriptedReply:
    """What a fake model answers, how long it takes, or how it fails."""

    text: str = "ok"
    delay: float = 0.0
    error: Exception | None = None
    input_tokens: int | None = 10
    output_tokens: int | None = 20
    cost: float | None = 0.001


@dataclass
class RecordedCall:
    model_id: str
    provider: str
    prompt: str
    system_prompt: str | None
    settings: ModelSettings | None


@dataclass
class FakeProvider(ProviderAdapter):
    """Provider adapter answering from a script keyed by model id."""

    replies: dict[str, ScriptedReply] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    async def call(
        self,
        model_id: str,
        provider: str,
        prompt: str,
        system_prompt: str | None = None,
        settings: ModelSettings | None = None,
    ) -> ProviderResponse:
        self.calls.append(
            RecordedCall(model_id, provider, prompt, system_prompt, settings)
        )
        reply = self.replies.get(model_id, ScriptedReply())
        if reply.delay:
            await asyncio.sleep(reply.delay)
        if reply.error is not None:
            raise reply.error
        return ProviderResponse(
            text=reply.text,
            input_tokens=reply.input_tokens,
            output_tokens=reply.output_tokens,
            cost=reply.cost,
        )


class TestDataFactory:
    """Factory class for creating test data objects."""

    @staticmethod
    def create_blend(
        models: list[tuple[str, float]],
        strategy: AggregationStrategy = AggregationStrategy.WEIGHTED,
        blend_id: str = "blend-1",
        provider: str = "openai",
    ) -> BlendedModelConfig:
        return BlendedModelConfig(
            id=blend_id,
            name=f"Test blend {blend_id}",
            models=[
                ModelBlendEntry(model_id=model_id, provider=provider, weight=weight)
                for model_id, weight in models
            ],
            aggregation_strategy=strategy,
        )

    @staticmethod
    def create_metric(
        metric_id: str = "metric-1",
        timestamp: int = 1_700_000_000_000,
        provider: str = "openai",
        model: str = "gpt-4o",
        latency: float = 100.0,
        status: CallStatus = CallStatus.SUCCESS,
        prompt_tokens: int = 10,
        completion_tokens: int = 20,
        cost: float = 0.001,
    ) -> ApiCallMetric:
        return ApiCallMetric(
            id=metric_id,
            timestamp=timestamp,
            provider=provider,
            model=model,
            input_format=InputFormat.TEXT,
            latency=latency,
            tokens_used=prompt_tokens + completion_tokens,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            status=status,
            error_message=None if status == CallStatus.SUCCESS else "failed",
            estimated_cost=cost,
            prompt_length=40,
            response_length=80,
        )

    @staticmethod
    def create_comparison_result(
        model_id: str,
        latency: float,
        cost: float,
        quality: float | None,
        status: CallStatus = CallStatus.SUCCESS,
        provider: str = "openai",
        session_id: str = "cmp-1",
    ) -> ComparisonResult:
        quality_metrics = None
        if quality is not None:
            quality_metrics = QualityMetrics(
                coherence=quality, relevance=quality, completeness=quality
            )
        return ComparisonResult(
            session_id=session_id,
            model_id=model_id,
            provider=provider,
            model_name=model_id.upper(),
            response=None if status != CallStatus.SUCCESS else f"answer {model_id}",
            error=None if status == CallStatus.SUCCESS else "provider failed",
            status=status,
            metrics=CallMetrics(
                latency=latency,
                tokens=TokenTotals(input=100, output=100),
                cost=cost,
                timestamp=1_700_000_000_000,
            ),
            quality_metrics=quality_metrics,
        )


def failing_reply(message: str = "upstream exploded", delay: float = 0.0):
    return ScriptedReply(delay=delay, error=ProviderError(message, provider="openai"))
