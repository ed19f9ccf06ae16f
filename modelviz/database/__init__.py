"""Persistence for call metrics and saved comparisons."""

from .engine import (
    create_database_engine,
    create_database_tables,
)
from .repository import CallMetricRepository, ComparisonSessionRepository

__all__ = [
    "CallMetricRepository",
    "ComparisonSessionRepository",
    "create_database_engine",
    "create_database_tables",
]
