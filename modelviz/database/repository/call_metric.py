"""Repository for recorded call metrics."""

from sqlmodel import Session, col, select

from modelviz.database.repository.base import BaseRepository
from modelviz.models.metrics import ApiCallMetric
from modelviz.models.rows import StoredCallMetric


class CallMetricRepository(BaseRepository[StoredCallMetric]):
    """Repository for the durable call-metric log."""

    def __init__(self, db_session: Session):
        super().__init__(StoredCallMetric, db_session)

    def save_metric(self, metric: ApiCallMetric) -> StoredCallMetric:
        return self.create(StoredCallMetric.from_metric(metric))

    def get_all_metrics(self) -> list[ApiCallMetric]:
        """All metrics ordered by timestamp."""
        stmt = select(StoredCallMetric).order_by(
            col(StoredCallMetric.timestamp), col(StoredCallMetric.row_id)
        )
        return [row.to_metric() for row in self.db.exec(stmt).all()]

    def get_metrics_in_range(self, start: int, end: int) -> list[ApiCallMetric]:
        stmt = (
            select(StoredCallMetric)
            .where(
                StoredCallMetric.timestamp >= start,
                StoredCallMetric.timestamp <= end,
            )
            .order_by(col(StoredCallMetric.timestamp))
        )
        return [row.to_metric() for row in self.db.exec(stmt).all()]

    def get_recent_metrics(self, limit: int = 100) -> list[ApiCallMetric]:
        """Newest metrics first."""
        stmt = (
            select(StoredCallMetric)
            .order_by(col(StoredCallMetric.timestamp).desc())
            .limit(limit)
        )
        return [row.to_metric() for row in self.db.exec(stmt).all()]

    def delete_older_than(self, cutoff: int) -> int:
        """Delete metrics recorded before ``cutoff`` (epoch ms)."""
        stmt = select(StoredCallMetric).where(StoredCallMetric.timestamp < cutoff)
        return self._delete_rows(list(self.db.exec(stmt).all()))

    def delete_all(self) -> int:
        return self._delete_rows(list(self.db.exec(select(StoredCallMetric)).all()))

    def _delete_rows(self, rows: list[StoredCallMetric]) -> int:
        for row in rows:
            self.db.delete(row)
        self.db.commit()
        return len(rows)
