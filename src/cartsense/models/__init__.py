"""Pydantic models defining shared data contracts."""

from cartsense.models.documents import Document
from cartsense.models.offline import (
    CachedEntity,
    PendingOperation,
    StoreName,
    SyncAction,
    SyncResult,
    SyncStatus,
)
from cartsense.models.shopping import ShoppingItem, ShoppingItemCreate, ShoppingItemUpdate

__all__ = [
    "Document",
    "CachedEntity",
    "PendingOperation",
    "StoreName",
    "SyncAction",
    "SyncResult",
    "SyncStatus",
    "ShoppingItem",
    "ShoppingItemCreate",
    "ShoppingItemUpdate",
]
