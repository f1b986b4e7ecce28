"""SQLAlchemy models representing CartSense persistence tables.

Two independent schemas live here: the authoritative document store served by
the API (``Base``) and the per-device offline replica (``OfflineBase``). They are
created in separate SQLite files.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    # SQLite stores naive datetimes; keep everything in UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Declarative base class for the remote document store."""


class OfflineBase(DeclarativeBase):
    """Declarative base class for the on-device offline store."""


class DocumentORM(Base):
    """JSON document stored under a collection path such as ``shoppingLists/u1/items``."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    collection_path: Mapped[str] = mapped_column(String(512), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_documents_collection_created", "collection_path", "created_at"),
    )


class CachedEntityORM(OfflineBase):
    """Cached meal or shopping item; one row per (store, id)."""

    __tablename__ = "cached_entities"

    store: Mapped[str] = mapped_column(String(32), primary_key=True)
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    cached_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    sync_status: Mapped[str] = mapped_column(String(16), nullable=False, default="synced")

    __table_args__ = (Index("ix_cached_entities_store_cached_at", "store", "cached_at"),)


class PendingOperationORM(OfflineBase):
    """Append-only log entry describing a mutation awaiting remote confirmation."""

    __tablename__ = "pending_operations"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    collection: Mapped[str] = mapped_column(String(32), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_pending_operations_collection_created", "collection", "created_at"),
    )


__all__ = [
    "Base",
    "OfflineBase",
    "DocumentORM",
    "CachedEntityORM",
    "PendingOperationORM",
]
