"""Run maintenance jobs on a fixed interval inside the event loop."""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from modelviz.log import get_logger
from modelviz.models.task import TaskRunnerStatus, TaskStats
from modelviz.utils import now_ms

logger = get_logger(__name__)


class RunnerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class PeriodicTask(ABC):
    """A unit of work executed repeatedly by a ``PeriodicTaskRunner``."""

    name: str = "periodic-task"

    @abstractmethod
    async def execute(self) -> None:
        """One iteration of the job."""
        pass

    async def on_start(self) -> None:
        pass

    async def on_stop(self) -> None:
        pass

    async def on_error(self, error: Exception) -> None:
        logger.error(f"Error in {self.name}: {error}")


class PeriodicTaskRunner:
    """Executes a task now and then every ``interval_seconds`` until stopped.

    A failing iteration is retried after ``retry_delay``; after
    ``max_retries`` consecutive failures the loop gives up and the runner
    moves to ``RunnerState.ERROR``.
    """

    def __init__(
        self,
        task: PeriodicTask,
        interval_seconds: float = 60,
        retry_delay: float = 30,
        max_retries: int = 3,
    ):
        self.task = task
        self.interval_seconds = interval_seconds
        self.retry_delay = retry_delay
        self.max_retries = max_retries

        self.state = RunnerState.IDLE
        self.stats = TaskStats()
        self._loop_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

        logger.info(
            f"Initialized {self.__class__.__name__} for {task.name} "
            f"with {interval_seconds=}"
        )

    async def __aenter__(self) -> "PeriodicTaskRunner":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> None:
        """Start the background loop. Calling it twice is a no-op."""
        if self.is_running:
            logger.warning(f"{self.task.name} is already running")
            return

        await self.task.on_start()
        self._stop_event.clear()
        self.stats.started_at = now_ms()
        self.state = RunnerState.RUNNING
        self._loop_task = asyncio.create_task(self._loop())
        logger.info(f"Started {self.task.name}")

    async def stop(self) -> None:
        self._stop_event.set()

        if self._loop_task is not None and not self._loop_task.done():
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass

        try:
            await self.task.on_stop()
        except Exception as e:
            logger.error(f"Error while stopping {self.task.name}: {e}")

        if self.state != RunnerState.ERROR:
            self.state = RunnerState.STOPPED
        logger.info(f"Stopped {self.task.name}")

    async def run_once(self) -> None:
        """Execute one iteration outside the loop; errors propagate."""
        try:
            await self.task.execute()
        except Exception as e:
            self._record_failure()
            await self._handle_error(e)
            raise
        self._record_success()

    def get_status(self) -> TaskRunnerStatus:
        return TaskRunnerStatus(
            name=self.task.name,
            state=self.state.value,
            loop_active=self.is_running,
            stats=self.stats,
            config={
                "interval_seconds": self.interval_seconds,
                "retry_delay": self.retry_delay,
                "max_retries": self.max_retries,
            },
        )

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.task.execute()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._record_failure()
                await self._handle_error(e)
                if self.stats.consecutive_failures >= self.max_retries:
                    logger.error(
                        f"{self.task.name} failed {self.max_retries} times in a row, "
                        f"stopping"
                    )
                    self.state = RunnerState.ERROR
                    break
                delay = self.retry_delay
            else:
                self._record_success()
                delay = self.interval_seconds

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    def _record_success(self) -> None:
        self.stats.runs += 1
        self.stats.consecutive_failures = 0
        self.stats.last_run_at = now_ms()

    def _record_failure(self) -> None:
        self.stats.failures += 1
        self.stats.consecutive_failures += 1
        self.stats.last_failure_at = now_ms()

    async def _handle_error(self, error: Exception) -> None:
        try:
            await self.task.on_error(error)
        except Exception as e:
            logger.error(f"Error handler of {self.task.name} failed: {e}")
