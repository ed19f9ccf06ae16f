"""Generic repository over a SQLModel table."""

from typing import Generic, TypeVar

from sqlmodel import Session, SQLModel, func, select

from modelviz.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=SQLModel)


class BaseRepository(Generic[T]):
    """CRUD helpers shared by the concrete repositories."""

    def __init__(self, model: type[T], db: Session) -> None:
        self.model = model
        self.db = db

    def create(self, obj: T) -> T:
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            logger.debug(f"Created {self.model.__name__}")
        except Exception as exc:
            self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {exc}")
            raise

        return obj

    def get_by_id(self, obj_id: int | str) -> T | None:
        return self.db.get(self.model, obj_id)

    def update(self, obj: T) -> T:
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except Exception as exc:
            self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__}: {exc}")
            raise
        return obj

    def delete(self, obj_id: int | str) -> bool:
        """Delete an object by primary key."""
        obj = self.get_by_id(obj_id)
        if obj is None:
            return False

        self.db.delete(obj)
        self.db.commit()
        return True

    def count(self) -> int:
        """Count all objects."""
        statement = select(func.count()).select_from(self.model)
        return int(self.db.exec(statement).one())
