"""Data contracts for the local cache, pending-operation queue and sync results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StoreName(str, Enum):
    """Local cache stores; also the collections pending operations target."""

    SHOPPING_LIST = "shoppingList"
    SAVED_MEALS = "savedMeals"


class SyncAction(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


class SyncStatus(str, Enum):
    """Replication state of a cached record relative to the remote store."""

    SYNCED = "synced"
    PENDING = "pending"
    CONFLICT = "conflict"


class CachedEntity(BaseModel):
    """Locally cached copy of a meal or shopping item."""

    id: str
    store: StoreName
    payload: dict[str, Any] = Field(default_factory=dict)
    cached_at: datetime
    sync_status: SyncStatus = Field(default=SyncStatus.SYNCED)

    model_config = ConfigDict(frozen=True)


class PendingOperation(BaseModel):
    """Mutation intent recorded locally until the remote store confirms it."""

    id: str
    action: SyncAction
    collection: StoreName
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: int = Field(description="Microseconds since the epoch; defines replay order.")

    model_config = ConfigDict(frozen=True)


class SyncResult(BaseModel):
    """Summary of a single drain of one collection."""

    collection: StoreName
    success: bool = True
    synced: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


__all__ = [
    "StoreName",
    "SyncAction",
    "SyncStatus",
    "CachedEntity",
    "PendingOperation",
    "SyncResult",
]
