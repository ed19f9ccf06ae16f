"""Blend aggregation strategies.

Each strategy receives the successful results of a blend in completion
order and picks one of them as the blend's answer.
"""

from collections.abc import Callable

from pydantic import BaseModel

from modelviz.constants import BEST_OF_TIE_MARGIN, SIMILARITY_THRESHOLD, TOTAL_WEIGHT
from modelviz.exceptions import AggregationFailedError
from modelviz.models.blend import BlendedModelConfig, ModelExecutionResult
from modelviz.services.quality_scorer import response_quality
from modelviz.types import AggregationStrategy
from modelviz.utils import jaccard_similarity, normalize_tokens


class AggregationOutcome(BaseModel):
    selected: ModelExecutionResult
    confidence: float
    reasoning: str


StrategyFunction = Callable[
    [list[ModelExecutionResult], BlendedModelConfig], AggregationOutcome
]


def _model_count(config: BlendedModelConfig) -> int:
    return max(len(config.models), 1)


def consensus(
    successes: list[ModelExecutionResult], config: BlendedModelConfig
) -> AggregationOutcome:
    """Largest cluster of mutually similar responses wins.

    A response joins the first cluster whose founding member it overlaps
    by at least ``SIMILARITY_THRESHOLD`` (Jaccard over normalized token
    sets). Cluster ties go to the higher total weight, then to the cluster
    whose founder completed first. The returned member is the one most
    similar on average to the rest of its cluster.
    """
    tokens = [normalize_tokens(result.response or "") for result in successes]

    clusters: list[list[int]] = []
    for index, token_set in enumerate(tokens):
        for cluster in clusters:
            similarity = jaccard_similarity(tokens[cluster[0]], token_set)
            if similarity >= SIMILARITY_THRESHOLD:
                cluster.append(index)
                break
        else:
            clusters.append([index])

    def cluster_weight(cluster: list[int]) -> float:
        return sum(config.weight_of(successes[i].model_id) for i in cluster)

    # max() keeps the earliest-founded cluster on ties
    best = max(clusters, key=lambda c: (len(c), cluster_weight(c)))

    def centrality(index: int) -> float:
        others = [i for i in best if i != index]
        if not others:
            return 1.0
        total = sum(jaccard_similarity(tokens[index], tokens[i]) for i in others)
        return total / len(others)

    representative = max(best, key=centrality)
    selected = successes[representative]
    return AggregationOutcome(
        selected=selected,
        confidence=len(best) / _model_count(config),
        reasoning=(
            f"{len(best)} of {len(config.models)} models agreed "
            f"(largest of {len(clusters)} similarity clusters)"
        ),
    )


def weighted(
    successes: list[ModelExecutionResult], config: BlendedModelConfig
) -> AggregationOutcome:
    """Free text cannot be merged, so the heaviest successful model wins."""
    selected = min(
        successes,
        key=lambda r: (-config.weight_of(r.model_id), r.latency_ms),
    )
    weight = config.weight_of(selected.model_id)
    return AggregationOutcome(
        selected=selected,
        confidence=weight / TOTAL_WEIGHT,
        reasoning=(
            f"Selected {selected.model_id}, the highest-weighted successful model "
            f"({weight:g}%)"
        ),
    )


def first_success(
    successes: list[ModelExecutionResult], config: BlendedModelConfig
) -> AggregationOutcome:
    selected = successes[0]
    return AggregationOutcome(
        selected=selected,
        confidence=1 / _model_count(config),
        reasoning=(
            f"{selected.model_id} responded first in {selected.latency_ms:.0f}ms"
        ),
    )


def best_of(
    successes: list[ModelExecutionResult], config: BlendedModelConfig
) -> AggregationOutcome:
    """Highest ``response_quality`` wins; equal scores go to the cheaper call."""
    scores = [response_quality(result.response or "") for result in successes]
    best_index = min(
        range(len(successes)),
        key=lambda i: (-scores[i], successes[i].cost),
    )
    best_score = scores[best_index]
    near_best = sum(1 for score in scores if best_score - score <= BEST_OF_TIE_MARGIN)
    selected = successes[best_index]
    return AggregationOutcome(
        selected=selected,
        confidence=near_best / _model_count(config),
        reasoning=(
            f"{selected.model_id} scored highest on response quality "
            f"({best_score:.2f})"
        ),
    )


STRATEGIES: dict[AggregationStrategy, StrategyFunction] = {
    AggregationStrategy.CONSENSUS: consensus,
    AggregationStrategy.WEIGHTED: weighted,
    AggregationStrategy.FIRST_SUCCESS: first_success,
    AggregationStrategy.BEST_OF: best_of,
}


def aggregate(
    results: list[ModelExecutionResult], config: BlendedModelConfig
) -> AggregationOutcome:
    """Apply the blend's strategy to its results (completion order).

    Raises:
        AggregationFailedError: if no result succeeded
    """
    successes = [result for result in results if result.is_success]
    if not successes:
        failures = ", ".join(
            f"{result.model_id} ({result.status.value}: {result.error})"
            for result in results
        )
        raise AggregationFailedError(
            f"All models in blend {config.id} failed: {failures}", results=results
        )

    return STRATEGIES[config.aggregation_strategy](successes, config)
