"""Side-by-side model comparison: execution, ranking, export and persistence."""

import asyncio
import csv
import io
import json

from sqlalchemy.engine import Engine
from sqlmodel import Session

from modelviz.constants import (
    CALLS_PER_PROJECTION,
    COST_EPSILON,
    DEFAULT_CALL_TIMEOUT,
    MAX_SAVED_SESSIONS,
    OVERALL_COST_WEIGHT,
    OVERALL_QUALITY_WEIGHT,
    OVERALL_SPEED_WEIGHT,
    QUALITY_THRESHOLD,
    TOKENS_PER_MILLION,
)
from modelviz.database.repository import ComparisonSessionRepository
from modelviz.exceptions import InvalidConfigError, NoResultsError
from modelviz.log import get_logger
from modelviz.models.blend import ModelExecutionResult, TokenTotals
from modelviz.models.comparison import (
    CallMetrics,
    CheapestMetric,
    ComparisonAnalysis,
    ComparisonFilters,
    ComparisonModel,
    ComparisonResult,
    ComparisonSession,
    CostProjection,
    ExtremalMetrics,
    FastestMetric,
    HighestQualityMetric,
    QualityMetrics,
    Rankings,
    Recommendations,
    ResponseDiff,
    SessionMetadata,
)
from modelviz.providers.base import ProviderAdapter
from modelviz.services.call_tracker import execute_tracked_call
from modelviz.services.metrics_service import MetricsAggregator
from modelviz.services.quality_scorer import QualityScorer
from modelviz.types import ExportFormat
from modelviz.utils import generate_id, jaccard_similarity, normalize_tokens, now_ms

logger = get_logger(__name__)

CSV_HEADER = [
    "Model",
    "Provider",
    "Status",
    "Latency (ms)",
    "Cost ($)",
    "Input Tokens",
    "Output Tokens",
    "Quality",
    "Error",
]


class ComparisonService:
    """Runs a prompt against several models and ranks the outcomes."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        aggregator: MetricsAggregator,
        scorer: QualityScorer | None = None,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        quality_threshold: float = QUALITY_THRESHOLD,
        error_cost_placeholder: float = 0.0,
        engine: Engine | None = None,
        max_saved_sessions: int = MAX_SAVED_SESSIONS,
    ) -> None:
        self.adapter = adapter
        self.aggregator = aggregator
        self.scorer = scorer
        self.call_timeout = call_timeout
        self.quality_threshold = quality_threshold
        self.error_cost_placeholder = error_cost_placeholder
        self.engine = engine
        self.max_saved_sessions = max_saved_sessions

        logger.info(
            f"Initialized {self.__class__.__name__} with "
            f"{call_timeout=}, {quality_threshold=}, persistence={engine is not None}"
        )

    def create_session(
        self,
        name: str,
        prompt: str,
        models: list[ComparisonModel],
        system_prompt: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        saved: bool = False,
    ) -> ComparisonSession:
        return ComparisonSession(
            id=generate_id("cmp"),
            name=name,
            description=description,
            prompt=prompt,
            system_prompt=system_prompt,
            models=models,
            metadata=SessionMetadata(
                created=now_ms(), saved=saved, tags=list(tags or [])
            ),
        )

    # --- execution -----------------------------------------------------

    async def run_comparison(self, session: ComparisonSession) -> ComparisonSession:
        """Call every model of the session concurrently and score the answers.

        Raises:
            InvalidConfigError: for an empty model list, duplicate model ids,
                an empty prompt, or a session that already completed
        """
        self._validate(session)
        logger.info(
            f"Running comparison {session.id} across {len(session.models)} models"
        )

        outcomes = await asyncio.gather(
            *(self._call_model(session, model) for model in session.models)
        )

        session.results = [
            self._to_comparison_result(session, model, outcome)
            for model, outcome in zip(session.models, outcomes)
        ]
        session.metadata.completed = now_ms()

        succeeded = sum(1 for result in session.results if result.is_success)
        logger.info(
            f"Comparison {session.id} completed: "
            f"{succeeded}/{len(session.results)} models succeeded"
        )

        if session.metadata.saved and self.engine is not None:
            self.save_session(session)
        return session

    def _validate(self, session: ComparisonSession) -> None:
        if session.is_completed:
            raise InvalidConfigError(f"Session {session.id} has already completed")
        if not session.models:
            raise InvalidConfigError("Comparison needs at least one model")
        model_ids = [model.id for model in session.models]
        if len(set(model_ids)) != len(model_ids):
            raise InvalidConfigError(f"Duplicate model ids in comparison: {model_ids}")
        if not session.prompt.strip():
            raise InvalidConfigError("Prompt must not be empty")

    async def _call_model(
        self, session: ComparisonSession, model: ComparisonModel
    ) -> ModelExecutionResult:
        return await execute_tracked_call(
            self.adapter,
            model.id,
            model.provider,
            session.prompt,
            system_prompt=session.system_prompt,
            settings=model.settings,
            aggregator=self.aggregator,
            timeout=self.call_timeout,
        )

    def _to_comparison_result(
        self,
        session: ComparisonSession,
        model: ComparisonModel,
        outcome: ModelExecutionResult,
    ) -> ComparisonResult:
        quality = None
        if outcome.is_success:
            quality = self._score(session.prompt, outcome.response or "", model.id)

        return ComparisonResult(
            session_id=session.id,
            model_id=model.id,
            provider=model.provider,
            model_name=model.name,
            response=outcome.response,
            error=outcome.error,
            status=outcome.status,
            metrics=CallMetrics(
                latency=outcome.latency_ms,
                tokens=TokenTotals(
                    input=outcome.input_tokens, output=outcome.output_tokens
                ),
                cost=outcome.cost,
                timestamp=outcome.timestamp,
            ),
            quality_metrics=quality,
        )

    def _score(
        self, prompt: str, response: str, model_id: str
    ) -> QualityMetrics | None:
        if self.scorer is None:
            return None
        try:
            return self.scorer.score(prompt, response)
        except Exception as e:
            logger.warning(f"Quality scoring failed for {model_id}: {e}")
            return None

    # --- analysis ------------------------------------------------------

    def analyze(self, session: ComparisonSession) -> ComparisonAnalysis:
        """Rank the results of a completed session.

        Raises:
            NoResultsError: if the session has no results
        """
        results = session.results or []
        if not results:
            raise NoResultsError(f"Session {session.id} has no results to analyze")

        successes = [result for result in results if result.is_success]
        overall_scores = self._overall_scores(results, successes)

        rankings = Rankings(
            speed=[
                r.model_id
                for r in sorted(
                    results,
                    key=lambda r: (not r.is_success, r.metrics.latency, r.model_id),
                )
            ],
            cost=[
                r.model_id
                for r in sorted(
                    results,
                    key=lambda r: (self._ranked_cost(r), not r.is_success, r.model_id),
                )
            ],
            quality=[
                r.model_id
                for r in sorted(
                    results,
                    key=lambda r: (
                        r.quality_score is None,
                        -(r.quality_score or 0.0),
                        r.model_id,
                    ),
                )
            ],
            overall=[
                r.model_id
                for r in sorted(
                    results,
                    key=lambda r: (
                        not r.is_success,
                        -overall_scores[r.model_id],
                        r.model_id,
                    ),
                )
            ],
        )

        by_id = {result.model_id: result for result in results}
        best_overall = rankings.overall[0]

        return ComparisonAnalysis(
            session_id=session.id,
            rankings=rankings,
            metrics=self._extremal_metrics(successes, rankings, by_id),
            recommendations=Recommendations(
                best_overall=best_overall,
                best_value=self._best_value(successes) or best_overall,
                fastest_acceptable=(
                    self._fastest_acceptable(successes) or best_overall
                ),
            ),
            cost_projection=_cost_projection(results),
            overall_scores=overall_scores,
        )

    def _ranked_cost(self, result: ComparisonResult) -> float:
        if result.is_success:
            return result.metrics.cost
        return self.error_cost_placeholder

    def _overall_scores(
        self, results: list[ComparisonResult], successes: list[ComparisonResult]
    ) -> dict[str, float]:
        scores = {result.model_id: 0.0 for result in results}
        if not successes:
            return scores

        latencies = [r.metrics.latency for r in successes]
        costs = [r.metrics.cost for r in successes]
        qualities = [r.quality_score or 0.0 for r in successes]

        for result in successes:
            speed = _normalize(result.metrics.latency, latencies, invert=True)
            cost = _normalize(result.metrics.cost, costs, invert=True)
            quality = _normalize(result.quality_score or 0.0, qualities)
            scores[result.model_id] = (
                OVERALL_SPEED_WEIGHT * speed
                + OVERALL_COST_WEIGHT * cost
                + OVERALL_QUALITY_WEIGHT * quality
            )
        return scores

    def _best_value(self, successes: list[ComparisonResult]) -> str | None:
        if not successes:
            return None
        best = max(
            sorted(successes, key=lambda r: r.model_id),
            key=lambda r: (r.quality_score or 0.0) / max(r.metrics.cost, COST_EPSILON),
        )
        return best.model_id

    def _fastest_acceptable(self, successes: list[ComparisonResult]) -> str | None:
        acceptable = [
            r
            for r in successes
            if r.quality_score is not None and r.quality_score >= self.quality_threshold
        ]
        if not acceptable:
            return None
        return min(acceptable, key=lambda r: (r.metrics.latency, r.model_id)).model_id

    def _extremal_metrics(
        self,
        successes: list[ComparisonResult],
        rankings: Rankings,
        by_id: dict[str, ComparisonResult],
    ) -> ExtremalMetrics:
        if successes:
            fastest = min(successes, key=lambda r: (r.metrics.latency, r.model_id))
            cheapest = min(successes, key=lambda r: (r.metrics.cost, r.model_id))
            highest = by_id[rankings.quality[0]]
            if not highest.is_success:
                highest = successes[0]
        else:
            fastest = by_id[rankings.speed[0]]
            cheapest = by_id[rankings.cost[0]]
            highest = by_id[rankings.quality[0]]

        return ExtremalMetrics(
            fastest=FastestMetric(
                model_id=fastest.model_id, latency=fastest.metrics.latency
            ),
            cheapest=CheapestMetric(
                model_id=cheapest.model_id, cost=cheapest.metrics.cost
            ),
            highest_quality=HighestQualityMetric(
                model_id=highest.model_id, score=highest.quality_score or 0.0
            ),
        )

    # --- presentation helpers ------------------------------------------

    def export_results(
        self,
        session: ComparisonSession,
        analysis: ComparisonAnalysis | None = None,
        export_format: ExportFormat = ExportFormat.JSON,
    ) -> str:
        """Render a session (and its analysis) as JSON, Markdown or CSV."""
        if analysis is None and session.results:
            analysis = self.analyze(session)

        if export_format == ExportFormat.MARKDOWN:
            return _export_markdown(session, analysis)
        if export_format == ExportFormat.CSV:
            return _export_csv(session)

        payload = {
            "session": session.model_dump(mode="json"),
            "analysis": analysis.model_dump(mode="json") if analysis else None,
            "export_date": now_ms(),
            "format": export_format.value,
        }
        return json.dumps(payload, indent=2)

    @staticmethod
    def filter_results(
        results: list[ComparisonResult], filters: ComparisonFilters
    ) -> list[ComparisonResult]:
        def keep(result: ComparisonResult) -> bool:
            if filters.providers and result.provider not in filters.providers:
                return False
            if filters.models and result.model_id not in filters.models:
                return False
            if filters.max_cost is not None and result.metrics.cost > filters.max_cost:
                return False
            if (
                filters.max_latency is not None
                and result.metrics.latency > filters.max_latency
            ):
                return False
            if filters.min_quality is not None:
                score = result.quality_score
                if score is None or score < filters.min_quality:
                    return False
            return True

        return [result for result in results if keep(result)]

    @staticmethod
    def diff_responses(a: ComparisonResult, b: ComparisonResult) -> ResponseDiff:
        words_a = (a.response or "").split()
        words_b = (b.response or "").split()
        seen_a = set(words_a)
        seen_b = set(words_b)
        return ResponseDiff(
            model_a=a.model_id,
            model_b=b.model_id,
            similarity=jaccard_similarity(
                normalize_tokens(a.response or ""), normalize_tokens(b.response or "")
            ),
            additions=list(dict.fromkeys(w for w in words_b if w not in seen_a)),
            deletions=list(dict.fromkeys(w for w in words_a if w not in seen_b)),
        )

    # --- persistence ---------------------------------------------------

    def _repository(self, db: Session) -> ComparisonSessionRepository:
        return ComparisonSessionRepository(db, max_sessions=self.max_saved_sessions)

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("Session persistence is not configured")
        return self.engine

    def save_session(self, session: ComparisonSession) -> None:
        session.metadata.saved = True
        with Session(self._require_engine()) as db:
            self._repository(db).save_session(session)
        logger.debug(f"Saved comparison session {session.id}")

    def load_session(self, session_id: str) -> ComparisonSession | None:
        with Session(self._require_engine()) as db:
            return self._repository(db).load_session(session_id)

    def list_sessions(self) -> list[ComparisonSession]:
        with Session(self._require_engine()) as db:
            return self._repository(db).list_sessions()

    def delete_session(self, session_id: str) -> bool:
        with Session(self._require_engine()) as db:
            deleted = self._repository(db).delete_session(session_id)
        if deleted:
            logger.info(f"Deleted comparison session {session_id}")
        return deleted


def _normalize(value: float, values: list[float], invert: bool = False) -> float:
    low, high = min(values), max(values)
    if high == low:
        return 1.0
    scaled = (value - low) / (high - low)
    return 1.0 - scaled if invert else scaled


def _cost_projection(results: list[ComparisonResult]) -> CostProjection:
    per_calls: dict[str, float] = {}
    per_tokens: dict[str, float] = {}
    for result in results:
        cost = result.metrics.cost
        tokens = result.metrics.tokens.input + result.metrics.tokens.output
        per_calls[result.model_id] = cost * CALLS_PER_PROJECTION
        per_tokens[result.model_id] = (
            cost / tokens * TOKENS_PER_MILLION if tokens else 0.0
        )
    return CostProjection(per_1000_calls=per_calls, per_1m_tokens=per_tokens)


def _export_markdown(
    session: ComparisonSession, analysis: ComparisonAnalysis | None
) -> str:
    lines = [
        "# Model Comparison Report",
        "",
        f"**Session**: {session.name}",
        f"**Created**: {session.metadata.created}",
        f"**Prompt**: {session.prompt}",
        "",
        "## Results",
        "",
    ]
    for result in session.results or []:
        tokens = result.metrics.tokens
        lines += [
            f"### {result.model_name}",
            f"- **Provider**: {result.provider}",
            f"- **Status**: {result.status.value}",
            f"- **Latency**: {result.metrics.latency:.0f}ms",
            f"- **Cost**: ${result.metrics.cost:.4f}",
            f"- **Tokens**: {tokens.input}/{tokens.output}",
        ]
        if result.error:
            lines.append(f"- **Error**: {result.error}")
        lines += ["", "**Response**:", result.response or "", "", "---", ""]

    if analysis is not None:
        extremes = analysis.metrics
        recs = analysis.recommendations
        lines += [
            "## Analysis",
            "",
            "### Rankings",
            f"- **Fastest**: {extremes.fastest.model_id} "
            f"({extremes.fastest.latency:.0f}ms)",
            f"- **Cheapest**: {extremes.cheapest.model_id} "
            f"(${extremes.cheapest.cost:.4f})",
            f"- **Highest Quality**: {extremes.highest_quality.model_id} "
            f"({extremes.highest_quality.score:.2f})",
            "",
            "### Recommendations",
            f"- **Best Overall**: {recs.best_overall}",
            f"- **Best Value**: {recs.best_value}",
            f"- **Fastest Acceptable**: {recs.fastest_acceptable}",
        ]
    return "\n".join(lines) + "\n"


def _export_csv(session: ComparisonSession) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for result in session.results or []:
        quality = result.quality_score
        writer.writerow(
            [
                result.model_name,
                result.provider,
                result.status.value,
                f"{result.metrics.latency:.0f}",
                f"{result.metrics.cost:.6f}",
                result.metrics.tokens.input,
                result.metrics.tokens.output,
                f"{quality:.3f}" if quality is not None else "",
                result.error or "",
            ]
        )
    return buffer.getvalue()
