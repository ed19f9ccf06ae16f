"""Utility functions for the engine."""

import math
import re
import time
import uuid
from datetime import UTC, datetime

_WORD_PATTERN = re.compile(r"[^\w\s]")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def generate_id(prefix: str) -> str:
    """Generate a short unique identifier such as ``metric_1a2b3c4d5e6f``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def normalize_tokens(text: str) -> frozenset[str]:
    """Lower-case, strip punctuation and split on whitespace."""
    return frozenset(_WORD_PATTERN.sub(" ", text.lower()).split())


def jaccard_similarity(left: frozenset[str], right: frozenset[str]) -> float:
    """Jaccard overlap of two token sets; two empty sets are identical."""
    if not left and not right:
        return 1.0
    return len(left & right) / len(left | right)


def nearest_rank(sorted_values: list[float], percentile: float) -> float:
    """Nearest-rank percentile of an ascending list; 0 for an empty list.

    The index is ``ceil(p * n) - 1`` clamped to ``[0, n - 1]``.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    # rounding guards against float noise such as 0.95 * 20 = 18.999...
    index = math.ceil(round(percentile * n, 9)) - 1
    return float(sorted_values[min(max(index, 0), n - 1)])
