"""Replay of queued shopping-list and meal mutations against the remote store.

Conflict policy is last-write-wins with the remote store as the source of truth:
queued operations are applied as-is and the local cache is rehydrated from the
remote afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional

from cartsense import metrics
from cartsense.errors import QueueCorrupt, RemoteWriteFailed, StorageUnavailable
from cartsense.models.offline import PendingOperation, StoreName, SyncAction, SyncResult
from cartsense.models.shopping import ShoppingItem
from cartsense.remote.base import RemoteDocumentStore, collection_path

from .queue import PendingQueue

logger = logging.getLogger(__name__)


class SyncEngine:
    """Drain the pending-operation queue one operation at a time.

    Each operation is dequeued as soon as the remote store confirms it. A failed
    operation stays queued and the drain moves on, so a single bad entry never
    blocks the rest of the queue.
    """

    def __init__(
        self,
        remote: RemoteDocumentStore,
        queue: Optional[PendingQueue] = None,
        *,
        user_id: Optional[str] = None,
    ) -> None:
        self._remote = remote
        self._queue = queue if queue is not None else PendingQueue()
        self._user_id = user_id
        self._inflight: Dict[StoreName, asyncio.Task[SyncResult]] = {}

    @property
    def queue(self) -> PendingQueue:
        return self._queue

    async def drain(self, collection: StoreName = StoreName.SHOPPING_LIST) -> SyncResult:
        """Replay every pending operation of ``collection`` in ``created_at`` order.

        Concurrent calls for the same collection share one drain.
        """

        collection = StoreName(collection)
        task = self._inflight.get(collection)
        if task is not None and not task.done():
            logger.debug("Drain already running for %s; awaiting it", collection.value)
            return await task

        task = asyncio.ensure_future(self._drain(collection))
        self._inflight[collection] = task
        try:
            return await task
        finally:
            if self._inflight.get(collection) is task:
                del self._inflight[collection]

    async def drain_all(self) -> List[SyncResult]:
        return [await self.drain(collection) for collection in StoreName]

    async def _drain(self, collection: StoreName) -> SyncResult:
        result = SyncResult(collection=collection)
        start = perf_counter()

        try:
            operations = self._queue.list_by_collection(collection)
        except StorageUnavailable as exc:
            logger.warning("Unable to read pending %s operations: %s", collection.value, exc)
            result.success = False
            result.errors.append(str(exc))
            return result

        for operation in operations:
            log_extra = {"operation_id": operation.id, "collection": collection.value}
            try:
                await self._dispatch(operation)
            except QueueCorrupt as exc:
                result.failed += 1
                result.errors.append(str(exc))
                logger.warning("Skipping malformed operation: %s", exc, extra=log_extra)
                metrics.SYNC_OPERATIONS.labels(
                    collection=collection.value, action=operation.action.value, result="corrupt"
                ).inc()
                continue
            except Exception as exc:
                failure = exc if isinstance(exc, RemoteWriteFailed) else RemoteWriteFailed(
                    str(exc) or exc.__class__.__name__, operation_id=operation.id
                )
                result.failed += 1
                result.errors.append(str(failure))
                logger.warning(
                    "Remote %s failed; operation stays queued: %s",
                    operation.action.value,
                    failure,
                    extra=log_extra,
                )
                metrics.SYNC_OPERATIONS.labels(
                    collection=collection.value, action=operation.action.value, result="failed"
                ).inc()
                continue

            try:
                self._queue.dequeue(operation.id)
            except StorageUnavailable as exc:
                # The remote write landed; the entry will be replayed on the next drain.
                logger.error("Unable to dequeue confirmed operation: %s", exc, extra=log_extra)
                result.errors.append(str(exc))
            result.synced += 1
            metrics.SYNC_OPERATIONS.labels(
                collection=collection.value, action=operation.action.value, result="synced"
            ).inc()

        result.success = result.failed == 0 and not result.errors
        metrics.SYNC_DRAIN_DURATION.labels(collection=collection.value).observe(
            perf_counter() - start
        )
        if result.synced or result.failed:
            logger.info(
                "Drained %s: synced=%s failed=%s",
                collection.value,
                result.synced,
                result.failed,
                extra={"collection": collection.value},
            )
        return result

    def _resolve_path(self, operation: PendingOperation) -> str:
        user_id = operation.data.get("user_id") or self._user_id
        if not user_id:
            raise QueueCorrupt(operation.id, "no user id for operation")
        return collection_path(operation.collection, str(user_id))

    async def _dispatch(self, operation: PendingOperation) -> None:
        path = self._resolve_path(operation)
        data = operation.data

        if operation.action is SyncAction.ADD:
            item = data.get("item")
            if not isinstance(item, Mapping):
                raise QueueCorrupt(operation.id, "missing item data for add operation")
            document_id = await self._remote.create(path, dict(item))
            logger.debug("Created remote document %s", document_id, extra={"operation_id": operation.id})
            return

        item_id = data.get("item_id")
        if not item_id:
            raise QueueCorrupt(
                operation.id, f"missing item_id for {operation.action.value} operation"
            )

        if operation.action is SyncAction.UPDATE:
            updates = data.get("updates")
            if not isinstance(updates, Mapping):
                raise QueueCorrupt(operation.id, "missing updates for update operation")
            await self._remote.update(path, str(item_id), dict(updates))
        else:
            await self._remote.delete(path, str(item_id))


def _item_payload(item: Any) -> dict[str, Any]:
    if hasattr(item, "model_dump"):
        return item.model_dump(mode="json", exclude_none=True, exclude={"id", "created_at"})
    return {key: value for key, value in dict(item).items() if key not in {"id", "created_at"}}


def queue_add_item(queue: PendingQueue, user_id: str, item: Any) -> str:
    """Queue creation of a shopping item (fields without ``id``)."""

    return queue.enqueue(
        SyncAction.ADD,
        StoreName.SHOPPING_LIST,
        {"user_id": user_id, "item": _item_payload(item)},
    )


def queue_update_item(
    queue: PendingQueue, user_id: str, item_id: str, updates: Mapping[str, Any]
) -> str:
    return queue.enqueue(
        SyncAction.UPDATE,
        StoreName.SHOPPING_LIST,
        {"user_id": user_id, "item_id": item_id, "updates": dict(updates)},
    )


def queue_delete_item(queue: PendingQueue, user_id: str, item_id: str) -> str:
    return queue.enqueue(
        SyncAction.DELETE,
        StoreName.SHOPPING_LIST,
        {"user_id": user_id, "item_id": item_id},
    )


async def fetch_shopping_list(remote: RemoteDocumentStore, user_id: str) -> List[ShoppingItem]:
    """Read the authoritative shopping list, newest first.

    Documents that do not decode as shopping items are logged and left out.
    """

    documents = await remote.query_ordered_descending_by_creation(
        collection_path(StoreName.SHOPPING_LIST, user_id)
    )
    items: List[ShoppingItem] = []
    for document in documents:
        try:
            items.append(ShoppingItem.model_validate(document))
        except ValueError as exc:
            logger.warning("Skipping undecodable remote item id=%s: %s", document.get("id"), exc)
    return items


def pending_count(queue: PendingQueue, collection: StoreName = StoreName.SHOPPING_LIST) -> int:
    return queue.count(collection)


def has_pending(queue: PendingQueue, collection: StoreName = StoreName.SHOPPING_LIST) -> bool:
    return pending_count(queue, collection) > 0


__all__ = [
    "SyncEngine",
    "fetch_shopping_list",
    "has_pending",
    "pending_count",
    "queue_add_item",
    "queue_delete_item",
    "queue_update_item",
]
