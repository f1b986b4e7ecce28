"""Local durable cache of meals and shopping-list items."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence

from sqlalchemy import delete, select

from cartsense.db.models import CachedEntityORM
from cartsense.models.offline import CachedEntity, StoreName, SyncStatus

from .queue import PendingQueue
from .storage import OfflineStorage, get_offline_storage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _split_entity(entity: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    entity_id = entity.get("id")
    if entity_id is None or str(entity_id) == "":
        raise ValueError("Cached entities require an 'id'")
    payload = {key: value for key, value in entity.items() if key != "id"}
    return str(entity_id), payload


class CacheSnapshot:
    """Cached rows captured when the snapshot was taken.

    Iteration decodes rows on demand and can be repeated; later writes to the
    cache are not reflected.
    """

    def __init__(self, store: StoreName, rows: Sequence[tuple[str, str, datetime, str]] = ()) -> None:
        self._store = store
        self._rows = tuple(rows)

    def __iter__(self) -> Iterator[CachedEntity]:
        for entity_id, raw_payload, cached_at, sync_status in self._rows:
            try:
                payload = json.loads(raw_payload or "{}")
            except json.JSONDecodeError:
                logger.warning("Skipping undecodable cached %s entry id=%s", self._store.value, entity_id)
                continue
            yield CachedEntity(
                id=entity_id,
                store=self._store,
                payload=payload,
                cached_at=cached_at,
                sync_status=SyncStatus(sync_status),
            )

    def __len__(self) -> int:
        return len(self._rows)

    def payloads(self) -> list[dict[str, Any]]:
        """Return each cached payload merged with its id."""

        return [{**entity.payload, "id": entity.id} for entity in self]


class OfflineCache:
    """Key/value replica of remote documents, keyed by (store, id)."""

    def __init__(self, storage: Optional[OfflineStorage] = None, *, clock: Optional[Clock] = None) -> None:
        self._storage = storage if storage is not None else get_offline_storage()
        self._clock = clock or _utcnow

    def is_available(self) -> bool:
        return self._storage.is_available()

    def put(
        self,
        store: StoreName,
        entities: Iterable[Mapping[str, Any]],
        *,
        sync_status: SyncStatus = SyncStatus.SYNCED,
    ) -> int:
        """Upsert entities (each mapping must carry an ``id``); returns the number written."""

        if not self.is_available():
            return 0

        prepared = [_split_entity(entity) for entity in entities]
        with self._storage.session_scope() as session:
            for row in self._orm_rows(store, prepared, sync_status):
                session.merge(row)
        return len(prepared)

    def _orm_rows(
        self,
        store: StoreName,
        prepared: Sequence[tuple[str, dict[str, Any]]],
        sync_status: SyncStatus,
    ) -> Iterator[CachedEntityORM]:
        # Each row is one microsecond older than the one before it, so a batch
        # reads back in the order it was written.
        cached_at = self._clock()
        for index, (entity_id, payload) in enumerate(prepared):
            yield CachedEntityORM(
                store=store.value,
                id=entity_id,
                payload=json.dumps(payload, default=str),
                cached_at=cached_at - timedelta(microseconds=index),
                sync_status=sync_status.value,
            )

    def put_one(
        self,
        store: StoreName,
        entity_id: str,
        payload: Mapping[str, Any],
        *,
        sync_status: SyncStatus = SyncStatus.SYNCED,
    ) -> None:
        self.put(store, [{**payload, "id": entity_id}], sync_status=sync_status)

    def replace_all(
        self,
        store: StoreName,
        entities: Iterable[Mapping[str, Any]],
        *,
        sync_status: SyncStatus = SyncStatus.SYNCED,
    ) -> int:
        """Make the store hold exactly ``entities``; remote state wins over local copies."""

        if not self.is_available():
            return 0

        prepared = [_split_entity(entity) for entity in entities]
        with self._storage.session_scope() as session:
            session.execute(delete(CachedEntityORM).where(CachedEntityORM.store == store.value))
            for row in self._orm_rows(store, prepared, sync_status):
                session.merge(row)
        logger.debug("Replaced cached %s with %s entr(ies)", store.value, len(prepared))
        return len(prepared)

    def get(self, store: StoreName, entity_id: str) -> Optional[CachedEntity]:
        if not self.is_available():
            return None
        with self._storage.session_scope() as session:
            row = session.get(CachedEntityORM, (store.value, entity_id))
            if row is None:
                return None
            snapshot = CacheSnapshot(
                store, [(row.id, row.payload, row.cached_at, row.sync_status)]
            )
        return next(iter(snapshot), None)

    def get_all(self, store: StoreName) -> CacheSnapshot:
        """Snapshot of a store, most recently cached first; a batch keeps its input order."""

        if not self.is_available():
            return CacheSnapshot(store)
        with self._storage.session_scope() as session:
            rows = session.execute(
                select(
                    CachedEntityORM.id,
                    CachedEntityORM.payload,
                    CachedEntityORM.cached_at,
                    CachedEntityORM.sync_status,
                )
                .where(CachedEntityORM.store == store.value)
                .order_by(CachedEntityORM.cached_at.desc(), CachedEntityORM.id.asc())
            ).all()
        return CacheSnapshot(store, [tuple(row) for row in rows])

    def delete(self, store: StoreName, entity_id: str) -> None:
        """Remove one entity; deleting an unknown id is a no-op."""

        if not self.is_available():
            return
        with self._storage.session_scope() as session:
            session.execute(
                delete(CachedEntityORM).where(
                    CachedEntityORM.store == store.value,
                    CachedEntityORM.id == entity_id,
                )
            )

    def clear(self, store: Optional[StoreName] = None) -> None:
        if not self.is_available():
            return
        statement = delete(CachedEntityORM)
        if store is not None:
            statement = statement.where(CachedEntityORM.store == store.value)
        with self._storage.session_scope() as session:
            session.execute(statement)


def clear_all_offline_data(
    cache: Optional[OfflineCache] = None, queue: Optional[PendingQueue] = None
) -> None:
    """Wipe both cache stores and every pending operation, e.g. on sign-out."""

    cache = cache if cache is not None else OfflineCache()
    queue = queue if queue is not None else PendingQueue()
    cache.clear()
    queue.clear()
    logger.info("Cleared offline cache and pending operations")


__all__ = ["CacheSnapshot", "OfflineCache", "clear_all_offline_data"]
