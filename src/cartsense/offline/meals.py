"""Saved-meal cache so recipes stay readable without a connection."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cartsense.errors import OfflineSyncError
from cartsense.models.offline import StoreName
from cartsense.remote.base import RemoteDocumentStore, collection_path

from .cache import OfflineCache
from .network import NetworkObserver, get_network_observer

logger = logging.getLogger(__name__)


class OfflineMeals:
    """Serve saved meals from the remote store when online and from the cache otherwise.

    Cache failures never reach the caller; the most recent one is kept in
    ``cache_error``.
    """

    def __init__(
        self,
        remote: RemoteDocumentStore,
        user_id: str,
        *,
        cache: Optional[OfflineCache] = None,
        observer: Optional[NetworkObserver] = None,
    ) -> None:
        if not user_id:
            raise ValueError("A user id is required for saved meals")
        self._remote = remote
        self._user_id = user_id
        self._cache = cache if cache is not None else OfflineCache()
        self._observer = observer if observer is not None else get_network_observer()
        self._meals: List[Dict[str, Any]] = []
        self.cache_error: Optional[Exception] = None

    @property
    def has_cached_data(self) -> bool:
        return bool(self.cached_meals())

    @property
    def is_offline_mode(self) -> bool:
        return self._observer.is_offline and self.has_cached_data

    async def refresh(self) -> List[Dict[str, Any]]:
        """Pull saved meals from the remote store and mirror them into the cache."""

        meals = await self._remote.query_ordered_descending_by_creation(
            collection_path(StoreName.SAVED_MEALS, self._user_id)
        )
        self._meals = [dict(meal) for meal in meals]
        if not self._meals:
            return list(self._meals)

        try:
            self._cache.put(StoreName.SAVED_MEALS, self._meals)
        except (OfflineSyncError, ValueError) as exc:
            logger.warning("Unable to cache saved meals: %s", exc)
            self.cache_error = exc
        return list(self._meals)

    def cached_meals(self) -> List[Dict[str, Any]]:
        """Cached meals, most recently cached first."""

        try:
            return self._cache.get_all(StoreName.SAVED_MEALS).payloads()
        except OfflineSyncError as exc:
            logger.warning("Unable to read cached meals: %s", exc)
            self.cache_error = exc
            return []

    async def meals(self) -> List[Dict[str, Any]]:
        if self._observer.is_offline:
            return self.cached_meals()
        try:
            return await self.refresh()
        except OfflineSyncError as exc:
            logger.warning("Serving cached meals after remote failure: %s", exc)
            return self.cached_meals()

    def remove_cached_meal(self, meal_id: str) -> None:
        try:
            self._cache.delete(StoreName.SAVED_MEALS, meal_id)
        except OfflineSyncError as exc:
            logger.warning("Unable to remove cached meal %s: %s", meal_id, exc)
            self.cache_error = exc
            return
        self._meals = [meal for meal in self._meals if meal.get("id") != meal_id]


__all__ = ["OfflineMeals"]
