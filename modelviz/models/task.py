"""Background task bookkeeping models."""

from typing import Any

from pydantic import BaseModel


class TaskStats(BaseModel):
    """Counters kept by a periodic task runner."""

    runs: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_run_at: int | None = None
    last_failure_at: int | None = None
    started_at: int | None = None


class TaskRunnerStatus(BaseModel):
    name: str
    state: str
    loop_active: bool
    stats: TaskStats
    config: dict[str, Any]
