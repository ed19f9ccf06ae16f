"""Periodic retention cleanup for recorded call metrics."""

from modelviz.log import get_logger
from modelviz.periodic_task import PeriodicTask
from modelviz.services.metrics_service import MetricsAggregator

logger = get_logger(__name__)


class MetricsCleanupTask(PeriodicTask):
    """Drops metrics older than the aggregator's retention period."""

    name = "metrics-cleanup"

    def __init__(self, aggregator: MetricsAggregator):
        self.aggregator = aggregator
        self.last_removed = 0

    async def execute(self) -> None:
        self.last_removed = self.aggregator.cleanup_old_data()
        if self.last_removed:
            logger.debug(f"Retention cleanup removed {self.last_removed} metrics")
