"""Repository for saved comparison sessions."""

from sqlmodel import Session, col, select

from modelviz.constants import MAX_SAVED_SESSIONS
from modelviz.database.repository.base import BaseRepository
from modelviz.log import get_logger
from modelviz.models.comparison import ComparisonSession
from modelviz.models.rows import StoredComparisonSession
from modelviz.utils import now_ms

logger = get_logger(__name__)


class ComparisonSessionRepository(BaseRepository[StoredComparisonSession]):
    """Keeps at most ``max_sessions`` sessions, newest first."""

    def __init__(self, db_session: Session, max_sessions: int = MAX_SAVED_SESSIONS):
        super().__init__(StoredComparisonSession, db_session)
        self.max_sessions = max_sessions

    def save_session(self, session: ComparisonSession) -> StoredComparisonSession:
        """Insert or replace a session, then evict the oldest beyond the limit."""
        existing = self.get_by_id(session.id)
        if existing is None:
            row = self.create(StoredComparisonSession.from_session(session))
        else:
            existing.name = session.name
            existing.payload = session.model_dump_json()
            existing.saved_at = now_ms()
            row = self.update(existing)

        self._evict_overflow()
        return row

    def load_session(self, session_id: str) -> ComparisonSession | None:
        row = self.get_by_id(session_id)
        return row.to_session() if row else None

    def list_sessions(self) -> list[ComparisonSession]:
        """Saved sessions, most recently saved first."""
        stmt = select(StoredComparisonSession).order_by(
            col(StoredComparisonSession.saved_at).desc(),
            col(StoredComparisonSession.created).desc(),
        )
        return [row.to_session() for row in self.db.exec(stmt).all()]

    def delete_session(self, session_id: str) -> bool:
        return self.delete(session_id)

    def _evict_overflow(self) -> None:
        stmt = (
            select(StoredComparisonSession)
            .order_by(
                col(StoredComparisonSession.saved_at).desc(),
                col(StoredComparisonSession.created).desc(),
            )
            .offset(self.max_sessions)
        )
        overflow = list(self.db.exec(stmt).all())
        if not overflow:
            return

        for row in overflow:
            self.db.delete(row)
        self.db.commit()
        logger.info(f"Evicted {len(overflow)} saved sessions over the limit")
