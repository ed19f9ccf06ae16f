"""Tests for the comparison service."""

import csv
import io
import json

import pytest
from sqlalchemy.engine import Engine

from modelviz.exceptions import InvalidConfigError, NoResultsError
from modelviz.models import (
    ComparisonFilters,
    ComparisonModel,
    ComparisonSession,
    SessionMetadata,
)
from modelviz.services import ComparisonService, HeuristicQualityScorer
from modelviz.services.quality_scorer import QualityScorer
from modelviz.types import CallStatus, ExportFormat

from tests.utils.test_helpers import (
    FakeProvider,
    ScriptedReply,
    TestDataFactory,
    failing_reply,
)


def three_model_session(
    session_id: str = "cmp-1", created: int = 1_700_000_000_000
) -> ComparisonSession:
    """A fast/cheap/low-quality, B slow/expensive/high-quality, C errored."""
    return ComparisonSession(
        id=session_id,
        name="ranking",
        prompt="Explain caching",
        models=[
            ComparisonModel(id="a", provider="openai", name="A"),
            ComparisonModel(id="b", provider="anthropic", name="B"),
            ComparisonModel(id="c", provider="google", name="C"),
        ],
        results=[
            TestDataFactory.create_comparison_result("a", 100.0, 0.001, 0.5),
            TestDataFactory.create_comparison_result(
                "b", 500.0, 0.01, 0.9, provider="anthropic"
            ),
            TestDataFactory.create_comparison_result(
                "c", 50.0, 0.0, None, status=CallStatus.ERROR
            ),
        ],
        metadata=SessionMetadata(created=created, completed=created + 1000),
    )


@pytest.fixture
def comparison_service(
    fake_provider: FakeProvider, aggregator, mock_db_engine: Engine
) -> ComparisonService:
    return ComparisonService(
        fake_provider,
        aggregator,
        scorer=HeuristicQualityScorer(),
        call_timeout=2.0,
        engine=mock_db_engine,
        max_saved_sessions=2,
    )


class TestAnalyze:
    """Rankings and recommendations over a fixed result set."""

    def test_rankings(self, comparison_service: ComparisonService) -> None:
        analysis = comparison_service.analyze(three_model_session())

        assert analysis.rankings.speed == ["a", "b", "c"]
        assert analysis.rankings.quality == ["b", "a", "c"]
        # errored models rank with the 0.0 cost placeholder
        assert analysis.rankings.cost == ["c", "a", "b"]
        assert analysis.rankings.overall == ["a", "b", "c"]

    def test_overall_scores(self, comparison_service: ComparisonService) -> None:
        analysis = comparison_service.analyze(three_model_session())

        # a: 0.3 * 1 + 0.3 * 1 + 0.4 * 0, b: 0.3 * 0 + 0.3 * 0 + 0.4 * 1
        assert analysis.overall_scores["a"] == pytest.approx(0.6)
        assert analysis.overall_scores["b"] == pytest.approx(0.4)
        assert analysis.overall_scores["c"] == 0.0

    def test_recommendations_and_extremes(
        self, comparison_service: ComparisonService
    ) -> None:
        analysis = comparison_service.analyze(three_model_session())

        assert analysis.recommendations.best_overall == "a"
        assert analysis.recommendations.best_value == "a"
        assert analysis.recommendations.fastest_acceptable == "b"
        assert analysis.metrics.fastest.model_id == "a"
        assert analysis.metrics.fastest.latency == 100.0
        assert analysis.metrics.cheapest.model_id == "a"
        assert analysis.metrics.highest_quality.model_id == "b"
        assert analysis.metrics.highest_quality.score == pytest.approx(0.9)

    def test_cost_projection(self, comparison_service: ComparisonService) -> None:
        analysis = comparison_service.analyze(three_model_session())

        assert analysis.cost_projection.per_1000_calls["a"] == pytest.approx(1.0)
        assert analysis.cost_projection.per_1m_tokens["a"] == pytest.approx(5.0)
        assert analysis.cost_projection.per_1000_calls["c"] == 0.0

    def test_analysis_is_deterministic(
        self, comparison_service: ComparisonService
    ) -> None:
        session = three_model_session()
        assert comparison_service.analyze(session) == comparison_service.analyze(
            session
        )

    def test_fastest_acceptable_falls_back_to_best_overall(
        self, fake_provider: FakeProvider, aggregator
    ) -> None:
        service = ComparisonService(fake_provider, aggregator, quality_threshold=0.95)
        analysis = service.analyze(three_model_session())

        assert analysis.recommendations.fastest_acceptable == "a"

    def test_all_errored(self, comparison_service: ComparisonService) -> None:
        session = three_model_session()
        session.results = [
            TestDataFactory.create_comparison_result(
                "x", 300.0, 0.0, None, status=CallStatus.ERROR
            ),
            TestDataFactory.create_comparison_result(
                "y", 200.0, 0.0, None, status=CallStatus.TIMEOUT
            ),
        ]

        analysis = comparison_service.analyze(session)

        assert analysis.rankings.speed == ["y", "x"]
        assert analysis.recommendations.best_overall == "x"
        assert analysis.metrics.fastest.model_id == "y"

    def test_no_results(self, comparison_service: ComparisonService) -> None:
        session = three_model_session()
        session.results = None

        with pytest.raises(NoResultsError):
            comparison_service.analyze(session)


class TestRunComparison:
    @pytest.mark.asyncio
    async def test_run_populates_results_in_model_order(
        self,
        comparison_service: ComparisonService,
        fake_provider: FakeProvider,
        aggregator,
    ) -> None:
        fake_provider.replies = {
            "slow": ScriptedReply(
                text="Caching stores results.\nIt avoids recomputation.", delay=0.05
            ),
            "broken": failing_reply("quota exceeded"),
            "fast": ScriptedReply(text="Caching keeps copies of data close by."),
        }
        session = comparison_service.create_session(
            name="caching",
            prompt="Explain caching",
            models=[
                ComparisonModel(id="slow", provider="openai", name="Slow"),
                ComparisonModel(id="broken", provider="openai", name="Broken"),
                ComparisonModel(id="fast", provider="openai", name="Fast"),
            ],
        )

        session = await comparison_service.run_comparison(session)

        assert session.is_completed
        assert [r.model_id for r in session.results or []] == ["slow", "broken", "fast"]
        slow, broken, fast = session.results or []
        assert slow.quality_metrics is not None
        assert slow.quality_metrics.accuracy is None
        assert broken.status == CallStatus.ERROR
        assert broken.quality_metrics is None
        assert broken.metrics.cost == 0.0
        assert fast.model_name == "Fast"
        assert len(aggregator) == 3

    @pytest.mark.asyncio
    async def test_rejects_invalid_sessions(
        self, comparison_service: ComparisonService, fake_provider: FakeProvider
    ) -> None:
        model = ComparisonModel(id="m", provider="openai", name="M")

        with pytest.raises(InvalidConfigError):
            await comparison_service.run_comparison(
                comparison_service.create_session("empty", "prompt", [])
            )
        with pytest.raises(InvalidConfigError):
            await comparison_service.run_comparison(
                comparison_service.create_session("dupes", "prompt", [model, model])
            )
        with pytest.raises(InvalidConfigError):
            await comparison_service.run_comparison(
                comparison_service.create_session("blank", "  ", [model])
            )
        with pytest.raises(InvalidConfigError):
            await comparison_service.run_comparison(three_model_session())

        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_failing_scorer_leaves_quality_empty(
        self, fake_provider: FakeProvider, aggregator
    ) -> None:
        class BrokenScorer(QualityScorer):
            def score(self, prompt, response):
                raise RuntimeError("scorer down")

        service = ComparisonService(fake_provider, aggregator, scorer=BrokenScorer())
        session = service.create_session(
            "s", "prompt", [ComparisonModel(id="m", provider="openai", name="M")]
        )

        session = await service.run_comparison(session)

        assert (session.results or [])[0].quality_metrics is None
        assert service.analyze(session).rankings.quality == ["m"]

    @pytest.mark.asyncio
    async def test_saved_sessions_persist_automatically(
        self, comparison_service: ComparisonService
    ) -> None:
        session = comparison_service.create_session(
            "persisted",
            "prompt",
            [ComparisonModel(id="m", provider="openai", name="M")],
            saved=True,
        )

        await comparison_service.run_comparison(session)

        loaded = comparison_service.load_session(session.id)
        assert loaded is not None
        assert loaded.results == session.results


class TestPersistence:
    def test_save_list_delete(self, comparison_service: ComparisonService) -> None:
        for i in range(1, 4):
            comparison_service.save_session(
                three_model_session(f"cmp-{i}", created=1_700_000_000_000 + i)
            )

        listed = [session.id for session in comparison_service.list_sessions()]
        assert listed == ["cmp-3", "cmp-2"]
        assert comparison_service.load_session("cmp-1") is None

        assert comparison_service.delete_session("cmp-2") is True
        assert comparison_service.delete_session("cmp-2") is False
        assert [s.id for s in comparison_service.list_sessions()] == ["cmp-3"]

    def test_persistence_requires_engine(
        self, fake_provider: FakeProvider, aggregator
    ) -> None:
        service = ComparisonService(fake_provider, aggregator)
        with pytest.raises(RuntimeError):
            service.list_sessions()


class TestPresentation:
    def test_export_json(self, comparison_service: ComparisonService) -> None:
        session = three_model_session()
        exported = json.loads(comparison_service.export_results(session))

        assert exported["format"] == "json"
        assert exported["session"]["id"] == "cmp-1"
        assert exported["analysis"]["recommendations"]["best_overall"] == "a"

    def test_export_markdown(self, comparison_service: ComparisonService) -> None:
        session = three_model_session()
        exported = comparison_service.export_results(
            session, export_format=ExportFormat.MARKDOWN
        )

        assert exported.startswith("# Model Comparison Report")
        assert "### B" in exported
        assert "- **Error**: provider failed" in exported
        assert "- **Best Overall**: a" in exported

    def test_export_csv(self, comparison_service: ComparisonService) -> None:
        session = three_model_session()
        exported = comparison_service.export_results(
            session, export_format=ExportFormat.CSV
        )

        rows = list(csv.reader(io.StringIO(exported)))
        assert rows[0][0] == "Model"
        assert len(rows) == 4
        assert rows[3][2] == "error"
        assert rows[3][-1] == "provider failed"

    def test_filter_results(self) -> None:
        results = three_model_session().results or []

        cheap = ComparisonService.filter_results(
            results, ComparisonFilters(max_cost=0.005)
        )
        assert [r.model_id for r in cheap] == ["a", "c"]

        good = ComparisonService.filter_results(
            results, ComparisonFilters(min_quality=0.6)
        )
        assert [r.model_id for r in good] == ["b"]

        anthropic = ComparisonService.filter_results(
            results, ComparisonFilters(providers=["anthropic"], max_latency=1000)
        )
        assert [r.model_id for r in anthropic] == ["b"]

    def test_diff_responses(self) -> None:
        a = TestDataFactory.create_comparison_result("a", 1.0, 0.0, None)
        b = TestDataFactory.create_comparison_result("b", 1.0, 0.0, None)

        diff = ComparisonService.diff_responses(a, b)

        assert diff.model_a == "a"
        assert diff.additions == ["b"]
        assert diff.deletions == ["a"]
        assert diff.similarity == pytest.approx(1 / 3)
