"""Append-only log of mutation intents awaiting remote confirmation."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, List, Mapping, Optional
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import delete, func, select

from cartsense import metrics
from cartsense.db.models import PendingOperationORM
from cartsense.errors import QueueCorrupt, StorageUnavailable
from cartsense.models.offline import PendingOperation, StoreName, SyncAction

from .storage import OfflineStorage, get_offline_storage

logger = logging.getLogger(__name__)


def _now_micros() -> int:
    return time.time_ns() // 1_000


def _to_model(row: PendingOperationORM) -> PendingOperation:
    try:
        data = json.loads(row.data or "{}")
        if not isinstance(data, dict):
            raise QueueCorrupt(row.id, "payload is not an object")
        return PendingOperation.model_validate(
            {
                "id": row.id,
                "action": row.action,
                "collection": row.collection,
                "data": data,
                "created_at": row.created_at,
            }
        )
    except json.JSONDecodeError as exc:
        raise QueueCorrupt(row.id, f"undecodable payload ({exc.msg})") from exc
    except ValidationError as exc:
        raise QueueCorrupt(row.id, f"invalid record ({exc.error_count()} error(s))") from exc


class PendingQueue:
    """Durable FIFO of pending operations, ordered by ``created_at``.

    ``created_at`` values are strictly increasing across the whole queue so that
    replay order is total even when operations are enqueued within one clock tick.
    """

    def __init__(
        self,
        storage: Optional[OfflineStorage] = None,
        *,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._storage = storage if storage is not None else get_offline_storage()
        self._clock = clock or _now_micros

    def is_available(self) -> bool:
        return self._storage.is_available()

    def enqueue(
        self,
        action: SyncAction | str,
        collection: StoreName | str,
        data: Mapping[str, Any],
    ) -> str:
        """Append an operation and return its id. Never touches the network."""

        if not self.is_available():
            raise StorageUnavailable("Cannot queue operations without offline storage")

        action = SyncAction(action)
        collection = StoreName(collection)
        with self._storage.session_scope() as session:
            latest = session.scalar(select(func.max(PendingOperationORM.created_at)))
            created_at = self._clock()
            if latest is not None and created_at <= latest:
                created_at = latest + 1
            operation_id = f"{collection.value}-{created_at}-{uuid4().hex[:9]}"
            session.add(
                PendingOperationORM(
                    id=operation_id,
                    action=action.value,
                    collection=collection.value,
                    data=json.dumps(dict(data), default=str),
                    created_at=created_at,
                )
            )

        logger.debug(
            "Queued %s for %s",
            action.value,
            collection.value,
            extra={"operation_id": operation_id, "collection": collection.value},
        )
        return operation_id

    def list_by_collection(self, collection: StoreName | str) -> List[PendingOperation]:
        """Return the operations for ``collection``, oldest first."""

        collection = StoreName(collection)
        return self._load(collection)

    def list_all(self) -> List[PendingOperation]:
        return self._load(None)

    def _load(self, collection: Optional[StoreName]) -> List[PendingOperation]:
        if not self.is_available():
            return []

        statement = select(PendingOperationORM).order_by(
            PendingOperationORM.created_at.asc(), PendingOperationORM.id.asc()
        )
        if collection is not None:
            statement = statement.where(PendingOperationORM.collection == collection.value)

        operations: List[PendingOperation] = []
        with self._storage.session_scope() as session:
            for row in session.execute(statement).scalars():
                try:
                    operations.append(_to_model(row))
                except QueueCorrupt as exc:
                    logger.warning(
                        "Skipping pending operation: %s",
                        exc,
                        extra={"operation_id": row.id, "collection": row.collection},
                    )
                    metrics.QUEUE_CORRUPT_RECORDS.labels(collection=row.collection).inc()
        return operations

    def dequeue(self, operation_id: str) -> None:
        """Remove an operation after its remote effect is confirmed; unknown ids are ignored."""

        if not self.is_available():
            return
        with self._storage.session_scope() as session:
            session.execute(
                delete(PendingOperationORM).where(PendingOperationORM.id == operation_id)
            )

    def count(self, collection: Optional[StoreName | str] = None) -> int:
        if not self.is_available():
            return 0
        statement = select(func.count()).select_from(PendingOperationORM)
        if collection is not None:
            statement = statement.where(
                PendingOperationORM.collection == StoreName(collection).value
            )
        with self._storage.session_scope() as session:
            return int(session.scalar(statement) or 0)

    def clear(self) -> None:
        if not self.is_available():
            return
        with self._storage.session_scope() as session:
            session.execute(delete(PendingOperationORM))


__all__ = ["PendingQueue"]
