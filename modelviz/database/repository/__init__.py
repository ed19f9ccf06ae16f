"""Repository layer for database operations."""

from .base import BaseRepository
from .call_metric import CallMetricRepository
from .comparison_session import ComparisonSessionRepository

__all__ = [
    "BaseRepository",
    "CallMetricRepository",
    "ComparisonSessionRepository",
]
