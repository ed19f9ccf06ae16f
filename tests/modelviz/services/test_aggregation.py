"""Tests for blend aggregation strategies."""

import pytest

from modelviz.exceptions import AggregationFailedError
from modelviz.models import ModelExecutionResult
from modelviz.services import aggregate
from modelviz.types import AggregationStrategy, CallStatus

from tests.utils.test_helpers import TestDataFactory


def make_result(
    model_id: str,
    response: str | None = "answer",
    latency: float = 100.0,
    cost: float = 0.001,
    status: CallStatus = CallStatus.SUCCESS,
) -> ModelExecutionResult:
    return ModelExecutionResult(
        model_id=model_id,
        provider="openai",
        response=response if status == CallStatus.SUCCESS else None,
        error=None if status == CallStatus.SUCCESS else "boom",
        status=status,
        latency_ms=latency,
        cost=cost if status == CallStatus.SUCCESS else 0.0,
        timestamp=1_700_000_000_000,
    )


class TestWeighted:
    def test_highest_weight_wins(self) -> None:
        config = TestDataFactory.create_blend([("a", 70), ("b", 30)])
        outcome = aggregate([make_result("b"), make_result("a")], config)

        assert outcome.selected.model_id == "a"
        assert outcome.confidence == pytest.approx(0.7)

    def test_failed_heavy_model_falls_back(self) -> None:
        config = TestDataFactory.create_blend([("a", 70), ("b", 30)])
        outcome = aggregate(
            [make_result("a", status=CallStatus.ERROR), make_result("b")], config
        )

        assert outcome.selected.model_id == "b"

    def test_weight_tie_goes_to_faster(self) -> None:
        config = TestDataFactory.create_blend([("a", 50), ("b", 50)])
        outcome = aggregate(
            [make_result("a", latency=300), make_result("b", latency=100)], config
        )

        assert outcome.selected.model_id == "b"


class TestConsensus:
    @pytest.mark.parametrize(
        "order",
        [["a", "b", "c"], ["c", "a", "b"], ["b", "c", "a"]],
    )
    def test_identical_pair_wins_regardless_of_order(self, order: list[str]) -> None:
        config = TestDataFactory.create_blend(
            [("a", 40), ("b", 30), ("c", 30)], strategy=AggregationStrategy.CONSENSUS
        )
        responses = {
            "a": "The capital of France is Paris.",
            "b": "The capital of France is Paris.",
            "c": "Bananas are an excellent source of potassium.",
        }
        results = [make_result(model_id, responses[model_id]) for model_id in order]

        outcome = aggregate(results, config)

        assert outcome.selected.response == responses["a"]
        assert outcome.selected.model_id in {"a", "b"}
        assert outcome.confidence == pytest.approx(2 / 3)

    def test_no_agreement_prefers_heavier_model(self) -> None:
        config = TestDataFactory.create_blend(
            [("a", 20), ("b", 80)], strategy=AggregationStrategy.CONSENSUS
        )
        results = [
            make_result("a", "completely different words here"),
            make_result("b", "nothing overlapping at all"),
        ]

        outcome = aggregate(results, config)

        assert outcome.selected.model_id == "b"
        assert outcome.confidence == pytest.approx(0.5)


class TestFirstSuccessAndBestOf:
    def test_first_success_takes_earliest(self) -> None:
        config = TestDataFactory.create_blend(
            [("a", 34), ("b", 33), ("c", 33)],
            strategy=AggregationStrategy.FIRST_SUCCESS,
        )
        results = [
            make_result("c", status=CallStatus.ERROR),
            make_result("b", latency=50),
            make_result("a", latency=80),
        ]

        outcome = aggregate(results, config)

        assert outcome.selected.model_id == "b"
        assert outcome.confidence == pytest.approx(1 / 3)

    def test_best_of_prefers_well_formed_answer(self) -> None:
        config = TestDataFactory.create_blend(
            [("short", 50), ("good", 50)], strategy=AggregationStrategy.BEST_OF
        )
        good = "A complete answer that ends properly. " * 5
        results = [make_result("short", "Yes."), make_result("good", good.strip())]

        outcome = aggregate(results, config)

        assert outcome.selected.model_id == "good"

    def test_best_of_tie_goes_to_cheaper(self) -> None:
        config = TestDataFactory.create_blend(
            [("pricey", 50), ("cheap", 50)], strategy=AggregationStrategy.BEST_OF
        )
        text = "Identical well formed answer. " * 6
        results = [
            make_result("pricey", text.strip(), cost=0.01),
            make_result("cheap", text.strip(), cost=0.001),
        ]

        outcome = aggregate(results, config)

        assert outcome.selected.model_id == "cheap"
        assert outcome.confidence == pytest.approx(1.0)


def test_all_failed_raises_with_results() -> None:
    config = TestDataFactory.create_blend([("a", 50), ("b", 50)])
    results = [
        make_result("a", status=CallStatus.ERROR),
        make_result("b", status=CallStatus.TIMEOUT),
    ]

    with pytest.raises(AggregationFailedError) as exc_info:
        aggregate(results, config)

    assert exc_info.value.results == results
