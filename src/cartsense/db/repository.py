"""Database engine and session management.

``create_sqlite_engine`` and ``transaction`` are shared with the offline store;
the module-level engine below backs the remote document store only.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from cartsense.config import get_settings
from cartsense.db.models import Base

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None
logger = logging.getLogger(__name__)


def create_sqlite_engine(db_path: Path, metadata: MetaData) -> Engine:
    """Open a SQLite engine at ``db_path`` and create the tables in ``metadata``."""

    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}", future=True, echo=False)
    try:
        metadata.create_all(engine)
    except OperationalError as exc:
        if "already exists" not in str(exc).lower():
            engine.dispose()
            raise
        logger.debug("Database schema already initialized at %s: %s", db_path, exc)
    return engine


@contextmanager
def transaction(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Yield a session from ``factory`` that commits on success and rolls back on error."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_engine(database_path: Path | None = None) -> Engine:
    """Return the shared document-store engine."""
    global _engine, _session_factory

    if _engine is None:
        _engine = create_sqlite_engine(
            database_path or get_settings().database_path,
            Base.metadata,
        )
        _session_factory = sessionmaker(
            bind=_engine, autoflush=False, autocommit=False, future=True
        )
    return _engine


def session_scope():
    """Context manager yielding a document-store session with automatic commit/rollback."""

    if _session_factory is None:
        get_engine()
    assert _session_factory is not None  # for mypy
    return transaction(_session_factory)


def reset_repository_state() -> None:
    """Reset cached engine/session state (intended for testing)."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "create_sqlite_engine",
    "get_engine",
    "reset_repository_state",
    "session_scope",
    "transaction",
]
