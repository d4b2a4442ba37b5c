"""Database connection and session management."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the engine and hands out transactional sessions.

    ``get_session()`` commits when the block exits cleanly and rolls back
    on any exception, so callers never commit by hand.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = self._create_engine(database_url, echo)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )
        logger.info(f"DatabaseManager initialized ({self.engine.dialect.name})")

    @staticmethod
    def _create_engine(database_url: str, echo: bool) -> Engine:
        if database_url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                # One shared connection, otherwise each session sees an empty DB
                kwargs["poolclass"] = StaticPool
            engine = create_engine(database_url, echo=echo, **kwargs)

            @event.listens_for(engine, "connect")
            def _enable_foreign_keys(dbapi_conn, _):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            return engine

        return create_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=20,
            max_overflow=10,
            pool_recycle=1800,
        )

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created")

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except OperationalError as e:
            logger.warning(f"Database ping failed: {e}")
            return False


_db_manager: Optional[DatabaseManager] = None


def get_database_manager(database_url: Optional[str] = None) -> DatabaseManager:
    """Return the shared DatabaseManager, creating it on first use."""
    global _db_manager
    if _db_manager is None:
        from ...setting import get_settings
        settings = get_settings()
        _db_manager = DatabaseManager(database_url or settings.database_url, echo=settings.echo_sql)
    return _db_manager


def wait_for_db(db_manager: DatabaseManager, retries: int = 10, delay: float = 2.0) -> bool:
    """Block until the database answers, retrying ``retries`` times."""
    for attempt in range(1, retries + 1):
        if db_manager.ping():
            logger.info("Database connected successfully")
            return True
        logger.warning(f"Database not ready (attempt {attempt}/{retries}), retrying in {delay}s")
        time.sleep(delay)
    logger.error("Database unavailable after retries")
    return False
