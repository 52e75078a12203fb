"""
Engine and session management.

Uses JOURNAL_DB_URL / DATABASE_URL for PostgreSQL when set; otherwise falls
back to SQLite (DATABASE_PATH or journal.db). The engine is created lazily on
first use and cached for the process.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from backend_journal.config.env import get_database_url, mask_database_url
from backend_journal.database.models import Base
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)

_engine = None
_SessionLocal: sessionmaker | None = None


def get_engine():
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args: dict[str, Any] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("journal_db_engine", url=mask_database_url(url))
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


@contextmanager
def session_scope() -> Iterator[Session]:
    """Context manager for a single session. Commits on success, rolls back on error."""
    factory = _get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all tables if they do not exist. Safe to call on every startup."""
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("journal_init_db", url=mask_database_url(get_database_url()))


def reset_engine_for_test() -> None:
    """Dispose and forget the cached engine. For tests only; use with a new DATABASE_PATH."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
