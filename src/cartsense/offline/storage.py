"""On-device durable storage medium backing the cache and the pending queue."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cartsense.config import get_settings
from cartsense.db.models import OfflineBase
from cartsense.db.repository import create_sqlite_engine, transaction
from cartsense.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class OfflineStorage:
    """Lazily opened SQLite replica holding cached entities and pending operations.

    A storage without a path, or one created with ``enabled=False``, models a
    runtime that has no durable medium at all: ``is_available`` reports False and
    callers are expected to degrade to remote-only behaviour.
    """

    def __init__(self, database_path: Optional[Path], *, enabled: bool = True) -> None:
        self._database_path = database_path
        self._enabled = enabled
        self._engine = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def database_path(self) -> Optional[Path]:
        return self._database_path

    def is_available(self) -> bool:
        """Return True when a durable medium exists in this runtime."""

        return self._enabled and self._database_path is not None

    def _open(self) -> sessionmaker[Session]:
        if self._session_factory is not None:
            return self._session_factory
        if not self.is_available():
            raise StorageUnavailable("Offline storage is not available in this runtime")
        assert self._database_path is not None  # for mypy

        try:
            self._engine = create_sqlite_engine(self._database_path, OfflineBase.metadata)
        except (OSError, SQLAlchemyError) as exc:
            logger.warning("Unable to open offline storage at %s: %s", self._database_path, exc)
            raise StorageUnavailable(
                f"Unable to open offline storage at {self._database_path}: {exc}"
            ) from exc

        self._session_factory = sessionmaker(
            bind=self._engine, autoflush=False, autocommit=False, future=True
        )
        logger.debug("Opened offline storage at %s", self._database_path)
        return self._session_factory

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Yield a transactional session; medium failures surface as ``StorageUnavailable``."""

        factory = self._open()
        try:
            with transaction(factory) as session:
                yield session
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Offline storage operation failed: {exc}") from exc

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None


_storage: OfflineStorage | None = None


def get_offline_storage() -> OfflineStorage:
    """Return the process-wide offline storage handle."""
    global _storage

    if _storage is None:
        settings = get_settings()
        _storage = OfflineStorage(
            settings.offline_database_path,
            enabled=settings.offline_storage_enabled,
        )
    return _storage


def reset_offline_storage() -> None:
    """Dispose the shared storage handle (intended for testing)."""
    global _storage

    if _storage is not None:
        _storage.close()
    _storage = None


__all__ = ["OfflineStorage", "get_offline_storage", "reset_offline_storage"]
