"""Offline cache, pending-operation queue and sync engine for CartSense clients."""

from cartsense.offline.cache import CacheSnapshot, OfflineCache, clear_all_offline_data
from cartsense.offline.meals import OfflineMeals
from cartsense.offline.network import (
    ConnectivityProbe,
    NetworkObserver,
    check_connectivity,
    get_network_observer,
    reset_network_observer,
)
from cartsense.offline.queue import PendingQueue
from cartsense.offline.runner import RetryBackoff, SyncRunner
from cartsense.offline.shopping_list import OfflineShoppingList
from cartsense.offline.status import ConnectivityBanner, SyncIndicator, sync_indicator
from cartsense.offline.storage import OfflineStorage, get_offline_storage, reset_offline_storage
from cartsense.offline.sync import (
    SyncEngine,
    fetch_shopping_list,
    has_pending,
    pending_count,
    queue_add_item,
    queue_delete_item,
    queue_update_item,
)

__all__ = [
    "CacheSnapshot",
    "OfflineCache",
    "clear_all_offline_data",
    "OfflineMeals",
    "ConnectivityProbe",
    "NetworkObserver",
    "check_connectivity",
    "get_network_observer",
    "reset_network_observer",
    "PendingQueue",
    "RetryBackoff",
    "SyncRunner",
    "OfflineShoppingList",
    "ConnectivityBanner",
    "SyncIndicator",
    "sync_indicator",
    "OfflineStorage",
    "get_offline_storage",
    "reset_offline_storage",
    "SyncEngine",
    "fetch_shopping_list",
    "has_pending",
    "pending_count",
    "queue_add_item",
    "queue_delete_item",
    "queue_update_item",
]
