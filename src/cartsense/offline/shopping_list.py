"""Offline-capable shopping list with optimistic local writes."""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from cartsense.errors import OfflineSyncError, StorageUnavailable
from cartsense.models.offline import StoreName, SyncResult, SyncStatus
from cartsense.models.shopping import ShoppingItem, ShoppingItemCreate, ShoppingItemUpdate
from cartsense.remote.base import RemoteDocumentStore, collection_path

from .cache import OfflineCache
from .network import NetworkObserver, get_network_observer
from .queue import PendingQueue
from .sync import (
    SyncEngine,
    fetch_shopping_list,
    queue_add_item,
    queue_delete_item,
    queue_update_item,
)

logger = logging.getLogger(__name__)

_TEMP_ALPHABET = string.ascii_lowercase + string.digits


def temporary_item_id() -> str:
    """Id for an item created offline; replaced by the remote id after sync."""

    suffix = "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(9))
    return f"temp-{int(time.time() * 1000)}-{suffix}"


def _cache_payload(item: ShoppingItem) -> Dict[str, Any]:
    return item.model_dump(mode="json", exclude={"id"})


class OfflineShoppingList:
    """Shopping list that keeps working while the device is offline.

    Online, mutations go straight to the remote store and the cache mirrors the
    result. Offline, mutations are applied to the cache and queued for replay by
    the sync engine.
    """

    def __init__(
        self,
        remote: RemoteDocumentStore,
        user_id: str,
        *,
        cache: Optional[OfflineCache] = None,
        queue: Optional[PendingQueue] = None,
        observer: Optional[NetworkObserver] = None,
        engine: Optional[SyncEngine] = None,
    ) -> None:
        if not user_id:
            raise ValueError("A user id is required for the shopping list")
        self._remote = remote
        self._user_id = user_id
        self._cache = cache if cache is not None else OfflineCache()
        self._queue = queue if queue is not None else PendingQueue()
        self._observer = observer if observer is not None else get_network_observer()
        self._engine = engine if engine is not None else SyncEngine(
            remote, self._queue, user_id=user_id
        )
        self._items: List[ShoppingItem] = []
        self.has_cached_data = False

    @property
    def items(self) -> List[ShoppingItem]:
        return list(self._items)

    @property
    def is_offline_mode(self) -> bool:
        return self._observer.is_offline and self.has_cached_data

    @property
    def _path(self) -> str:
        return collection_path(StoreName.SHOPPING_LIST, self._user_id)

    def cached_items(self) -> List[ShoppingItem]:
        items = []
        for entity in self._cache.get_all(StoreName.SHOPPING_LIST):
            try:
                items.append(ShoppingItem.model_validate({**entity.payload, "id": entity.id}))
            except ValueError as exc:
                logger.warning("Ignoring unreadable cached item %s: %s", entity.id, exc)
        return items

    async def load(self) -> List[ShoppingItem]:
        """Return the current list, hydrating the cache from the remote when online."""

        if self._observer.is_online:
            try:
                items = await fetch_shopping_list(self._remote, self._user_id)
            except OfflineSyncError as exc:
                logger.warning("Falling back to cached shopping list: %s", exc)
            else:
                self._items = items
                self._store_snapshot(items)
                return self.items

        try:
            self._items = self.cached_items()
        except StorageUnavailable as exc:
            logger.warning("Cached shopping list unavailable: %s", exc)
            return self.items
        self.has_cached_data = bool(self._items) or self.has_cached_data
        return self.items

    def _store_snapshot(self, items: List[ShoppingItem]) -> None:
        try:
            self._cache.replace_all(
                StoreName.SHOPPING_LIST,
                [{**_cache_payload(item), "id": item.id} for item in items],
            )
        except StorageUnavailable as exc:
            logger.warning("Unable to cache shopping list: %s", exc)
            return
        if self._cache.is_available():
            self.has_cached_data = True

    def _find(self, item_id: str) -> Optional[ShoppingItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        entity = self._cache.get(StoreName.SHOPPING_LIST, item_id)
        if entity is None:
            return None
        return ShoppingItem.model_validate({**entity.payload, "id": entity.id})

    def _cache_item(self, item: ShoppingItem, status: SyncStatus) -> None:
        try:
            self._cache.put_one(
                StoreName.SHOPPING_LIST, item.id, _cache_payload(item), sync_status=status
            )
        except StorageUnavailable as exc:
            logger.warning("Unable to cache item %s: %s", item.id, exc)

    def _remember(self, item: ShoppingItem, status: SyncStatus) -> None:
        self._items = [item] + [existing for existing in self._items if existing.id != item.id]
        self._cache_item(item, status)

    def _replace(self, item: ShoppingItem, status: SyncStatus) -> None:
        self._items = [item if existing.id == item.id else existing for existing in self._items]
        self._cache_item(item, status)

    def _forget(self, item_id: str) -> None:
        self._items = [item for item in self._items if item.id != item_id]
        try:
            self._cache.delete(StoreName.SHOPPING_LIST, item_id)
        except StorageUnavailable as exc:
            logger.warning("Unable to drop cached item %s: %s", item_id, exc)

    async def add_item(self, item: ShoppingItemCreate | Mapping[str, Any]) -> ShoppingItem:
        """Add an item; offline adds get a temporary id until the queue is drained."""

        create = item if isinstance(item, ShoppingItemCreate) else ShoppingItemCreate.model_validate(item)
        fields = create.model_dump(mode="json", exclude_none=True)

        if self._observer.is_offline:
            queue_add_item(self._queue, self._user_id, fields)
            added = ShoppingItem.model_validate(
                {**fields, "id": temporary_item_id(), "created_at": datetime.now(timezone.utc)}
            )
            self._remember(added, SyncStatus.PENDING)
            return added

        document_id = await self._remote.create(self._path, fields)
        added = ShoppingItem.model_validate({**fields, "id": document_id})
        self._remember(added, SyncStatus.SYNCED)
        return added

    async def update_item(
        self, item_id: str, updates: ShoppingItemUpdate | Mapping[str, Any]
    ) -> Optional[ShoppingItem]:
        """Apply a partial update and return the updated item when it is known locally."""

        if not isinstance(updates, ShoppingItemUpdate):
            updates = ShoppingItemUpdate.model_validate(updates)
        changes = updates.model_dump(mode="json", exclude_none=True)
        if not changes:
            return self._find(item_id)

        current = self._find(item_id)
        if self._observer.is_offline:
            if current is None:
                logger.debug("Not queueing update for unknown item %s", item_id)
                return None
            queue_update_item(self._queue, self._user_id, item_id, changes)
            status = SyncStatus.PENDING
        else:
            await self._remote.update(self._path, item_id, changes)
            status = SyncStatus.SYNCED

        if current is None:
            return None
        updated = current.model_copy(update=updates.model_dump(exclude_none=True))
        self._replace(updated, status)
        return updated

    async def toggle_item_checked(self, item_id: str) -> Optional[ShoppingItem]:
        """Flip ``checked`` on a known item; unknown ids are ignored."""

        current = self._find(item_id)
        if current is None:
            logger.debug("Ignoring toggle for unknown item %s", item_id)
            return None
        return await self.update_item(item_id, {"checked": not current.checked})

    async def delete_item(self, item_id: str) -> None:
        if self._observer.is_offline:
            queue_delete_item(self._queue, self._user_id, item_id)
        else:
            await self._remote.delete(self._path, item_id)
        self._forget(item_id)

    def pending_sync_count(self) -> int:
        return self._queue.count(StoreName.SHOPPING_LIST)

    async def sync(self) -> SyncResult:
        """Drain queued shopping-list operations, then refresh from the remote."""

        result = await self._engine.drain(StoreName.SHOPPING_LIST)
        if self._observer.is_online:
            await self.load()
        return result


__all__ = ["OfflineShoppingList", "temporary_item_id"]
