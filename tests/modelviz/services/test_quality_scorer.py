"""Tests for response quality heuristics."""

import pytest

from modelviz.services.quality_scorer import (
    HeuristicQualityScorer,
    keyword_coverage,
    looks_truncated,
    response_quality,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("A complete sentence.", False),
        ("Ends with a quote: \"done\"", False),
        ("```python\nprint('hi')\n```", False),
        ("", True),
        ("The answer is", True),
        ("Let me think...", True),
        ("Partial output [truncated]", True),
        ("```python\nprint('hi')", True),
    ],
)
def test_looks_truncated(text: str, expected: bool) -> None:
    assert looks_truncated(text) is expected


class TestResponseQuality:
    def test_target_length_scores_full(self) -> None:
        assert response_quality("word " * 40 + "end.") == 1.0

    def test_short_responses_scale_linearly(self) -> None:
        text = "x" * 49 + "."
        assert response_quality(text) == pytest.approx(0.5)

    def test_long_responses_decay(self) -> None:
        text = "x" * 3999 + "."
        assert response_quality(text) == pytest.approx(0.5)

    def test_truncation_penalty(self) -> None:
        complete = "word " * 40 + "end."
        cut = "word " * 40 + "end"
        assert response_quality(complete) - response_quality(cut) == pytest.approx(
            0.3
        )

    def test_never_negative(self) -> None:
        assert response_quality("abc") == 0.0


class TestHeuristicQualityScorer:
    @pytest.fixture
    def scorer(self) -> HeuristicQualityScorer:
        return HeuristicQualityScorer()

    def test_structured_relevant_answer(self, scorer: HeuristicQualityScorer) -> None:
        prompt = "Database caching strategies"
        response = (
            "Caching keeps hot data in memory. A database cache avoids repeated "
            "queries.\nCommon strategies are write-through and write-back."
        )

        metrics = scorer.score(prompt, response)

        assert metrics.coherence == pytest.approx(0.8)
        assert metrics.relevance == pytest.approx(1.0)
        assert metrics.completeness == pytest.approx(len(response) / 500)
        assert metrics.accuracy is None

    def test_short_truncated_answer(self, scorer: HeuristicQualityScorer) -> None:
        metrics = scorer.score("Explain caching", "It is")

        assert metrics.coherence == pytest.approx(0.2)
        assert metrics.relevance == pytest.approx(0.4)
        assert metrics.score < 0.3

    def test_scores_stay_in_range(self, scorer: HeuristicQualityScorer) -> None:
        metrics = scorer.score("caching", "caching. " * 200)

        for value in (metrics.coherence, metrics.relevance, metrics.completeness):
            assert 0.0 <= value <= 1.0
        assert metrics.completeness == 1.0


def test_keyword_coverage() -> None:
    assert keyword_coverage("Explain cache eviction", "Eviction drops entries") == (
        pytest.approx(1 / 3)
    )
    assert keyword_coverage("a b c", "anything") == 0.0
