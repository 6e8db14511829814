"""
Database connection and session management.

A Database owns one SQLAlchemy engine and session factory. DATABASE_URL selects
PostgreSQL (postgresql://..., psycopg2 driver) or SQLite. The application shares one
instance per URL through get_database(); tests construct their own.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from achievement_minter.achievement_logging import get_logger
from achievement_minter.database.tables import Base

logger = get_logger(__name__)


def _redact_url(url: str) -> str:
    return url.split("?")[0].split("@")[-1].split("//")[-1]


class Database:
    """Engine + session factory for one database URL."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        connect_args: dict[str, object] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine: Engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True, echo=echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("database_engine_created", url=_redact_url(url))

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
            logger.info("database_init_db", url=_redact_url(self.url))
        except Exception as e:
            logger.exception("database_init_db_failed", error=str(e))
            raise

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager for a single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()


_databases: dict[str, Database] = {}
_databases_lock = threading.Lock()


def get_database(url: str) -> Database:
    """Return the shared Database for url, creating it on first use."""
    with _databases_lock:
        db = _databases.get(url)
        if db is None:
            db = Database(url)
            _databases[url] = db
        return db


def reset_databases_for_test() -> None:
    """Dispose and forget cached Database instances. For tests only."""
    with _databases_lock:
        for db in _databases.values():
            db.dispose()
        _databases.clear()
