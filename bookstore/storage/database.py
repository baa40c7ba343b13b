"""
Engine and session factory shared by the repositories.
"""

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """
    Owns one SQLAlchemy engine and its session factory.

    Usage:
        db = Database("sqlite:///./bookstore.db")
        db.create_tables()

        with db.get_session() as session:
            ...
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", echo: bool = False):
        """
        Initialize the engine.

        Args:
            database_url: SQLAlchemy database URL
            echo: Log emitted SQL
        """
        # Strip async drivers for sync engine
        self.database_url = database_url.replace("+aiosqlite", "").replace("+asyncpg", "")

        engine_kwargs = {"echo": echo}
        if self.database_url.startswith("sqlite"):
            # Requests run in a threadpool; SQLite waits on writer locks instead of failing
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if _is_memory_sqlite(self.database_url):
                # An in-memory database only exists on its one connection
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(self.database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"Database initialized: {self.database_url[:50]}")

    def create_tables(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()
