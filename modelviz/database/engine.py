"""Database engine factory for SQLModel."""

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from modelviz.log import get_logger
from modelviz.models.rows import StoredCallMetric, StoredComparisonSession
from modelviz.types import Environment

logger = get_logger(__name__)

MEMORY_URL = "sqlite:///:memory:"


def setup_database_url(environment: Environment, db_path: Path | None = None) -> str:
    """Construct the database URL for an environment.

    Args:
        environment: Environment type
        db_path: Optional custom database path overriding the default

    Returns:
        Database connection URL
    """
    if environment == Environment.TESTING and db_path is None:
        return MEMORY_URL

    if db_path is None:
        if environment == Environment.PRODUCTION:
            db_path = Path("db", "modelviz.db")
        elif environment == Environment.DEVELOPMENT:
            db_path = Path("db", "modelviz.dev.db")
        else:
            raise ValueError(f"Unknown environment: {environment}")

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def create_database_engine(
    environment: Environment,
    echo: bool = False,
    db_path: Path | None = None,
) -> Engine:
    """Create a SQLite engine for the given environment."""
    database_url = setup_database_url(environment, db_path)
    logger.info(f"Creating database engine for: {database_url}")

    if database_url == MEMORY_URL:
        # A single shared connection keeps the in-memory database alive
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        echo=echo,
        connect_args={
            "check_same_thread": False,
            "timeout": 60.0,
        },
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
    )


def create_database_tables(engine: Engine) -> None:
    """Create all tables defined by the row models."""
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)

    for model in [StoredCallMetric, StoredComparisonSession]:
        logger.info(f"> Created table for {model.__tablename__}")
