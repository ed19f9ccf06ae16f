"""Response quality heuristics."""

import re
from abc import ABC, abstractmethod

from modelviz.constants import (
    TARGET_RESPONSE_MAX_CHARS,
    TARGET_RESPONSE_MIN_CHARS,
    TRUNCATION_PENALTY,
)
from modelviz.models.comparison import QualityMetrics

TERMINAL_CHARACTERS = frozenset(".!?\"')]}`*>:;")
TRUNCATION_MARKERS = ("[truncated]", "[...]", "<truncated>")
_KEYWORD_PATTERN = re.compile(r"[a-z0-9]{4,}")


class QualityScorer(ABC):
    """Scores a response to a prompt on the comparison quality dimensions."""

    @abstractmethod
    def score(self, prompt: str, response: str) -> QualityMetrics:
        pass


class HeuristicQualityScorer(QualityScorer):
    """Text-shape heuristics; no reference answer, so accuracy is left unset.

    - coherence: 0.8 when the response has sentence or line structure
      (a newline or ". "), 0.5 otherwise, minus the truncation penalty
    - relevance: 0.4 for responses up to 50 characters, 0.7 above, plus up
      to 0.3 for the share of prompt keywords (4+ characters) it mentions
    - completeness: response length over 500 characters, capped at 1
    """

    def score(self, prompt: str, response: str) -> QualityMetrics:
        text = response.strip()

        coherence = 0.8 if ("\n" in text or ". " in text) else 0.5
        if looks_truncated(text):
            coherence -= TRUNCATION_PENALTY

        relevance = 0.7 if len(text) > 50 else 0.4
        relevance += 0.3 * keyword_coverage(prompt, text)

        return QualityMetrics(
            coherence=_clamp(coherence),
            relevance=_clamp(relevance),
            completeness=_clamp(len(text) / 500),
        )


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def keyword_coverage(prompt: str, response: str) -> float:
    """Share of distinct prompt keywords that appear in the response."""
    keywords = set(_KEYWORD_PATTERN.findall(prompt.lower()))
    if not keywords:
        return 0.0
    mentioned = set(_KEYWORD_PATTERN.findall(response.lower()))
    return len(keywords & mentioned) / len(keywords)


def looks_truncated(text: str) -> bool:
    """Whether a response appears to be cut off."""
    stripped = text.rstrip()
    if not stripped:
        return True
    lowered = stripped.lower()
    if any(marker in lowered for marker in TRUNCATION_MARKERS):
        return True
    if stripped.endswith("...") or stripped.endswith("…"):
        return True
    # An odd number of fences means a code block was never closed
    if stripped.count("```") % 2 == 1:
        return True
    return stripped[-1] not in TERMINAL_CHARACTERS


def response_quality(text: str) -> float:
    """Heuristic used by the best-of blend strategy, in ``[0, 1]``.

    Lengths inside the target range score 1.0; shorter responses scale
    linearly down to 0 and longer ones decay as ``max / length``. A
    response that looks truncated loses ``TRUNCATION_PENALTY``.
    """
    length = len(text.strip())
    if length < TARGET_RESPONSE_MIN_CHARS:
        score = length / TARGET_RESPONSE_MIN_CHARS
    elif length > TARGET_RESPONSE_MAX_CHARS:
        score = TARGET_RESPONSE_MAX_CHARS / length
    else:
        score = 1.0

    if looks_truncated(text):
        score -= TRUNCATION_PENALTY
    return _clamp(score)
