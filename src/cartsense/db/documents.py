"""Document store persistence helpers."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping
from uuid import uuid4

from sqlalchemy import select

from cartsense.models.documents import Document

from .models import DocumentORM
from .repository import session_scope

logger = logging.getLogger(__name__)

# Keys owned by the store; clients cannot overwrite them through the payload.
RESERVED_FIELDS = frozenset({"id", "created_at", "updated_at"})


def normalize_collection_path(collection_path: str) -> str:
    segments = [segment for segment in collection_path.strip().split("/") if segment]
    if not segments:
        raise ValueError("Collection path must not be empty")
    return "/".join(segments)


def _strip_reserved(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key not in RESERVED_FIELDS}


def _to_model(row: DocumentORM) -> Document:
    return Document.model_validate(
        {
            "id": row.id,
            "collection_path": row.collection_path,
            "data": json.loads(row.data or "{}"),
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def list_documents(collection_path: str) -> List[Document]:
    """Return the documents of a collection, newest first."""

    path = normalize_collection_path(collection_path)
    with session_scope() as session:
        rows = (
            session.execute(
                select(DocumentORM)
                .where(DocumentORM.collection_path == path)
                .order_by(DocumentORM.created_at.desc(), DocumentORM.id.desc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def create_document(collection_path: str, data: Mapping[str, Any]) -> Document:
    """Insert a document under a freshly generated id."""

    path = normalize_collection_path(collection_path)
    with session_scope() as session:
        row = DocumentORM(
            id=uuid4().hex,
            collection_path=path,
            data=json.dumps(_strip_reserved(data), default=str),
        )
        session.add(row)
        session.flush()
        logger.debug("Created document %s in %s", row.id, path)
        return _to_model(row)


def update_document(collection_path: str, document_id: str, updates: Mapping[str, Any]) -> Document:
    """Merge ``updates`` into an existing document; raises ``ValueError`` if it is absent."""

    path = normalize_collection_path(collection_path)
    with session_scope() as session:
        row = session.get(DocumentORM, document_id)
        if row is None or row.collection_path != path:
            raise ValueError(f"Document {document_id} not found in {path}")

        merged = json.loads(row.data or "{}")
        merged.update(_strip_reserved(updates))
        row.data = json.dumps(merged, default=str)
        session.flush()
        return _to_model(row)


def delete_document(collection_path: str, document_id: str) -> bool:
    """Remove a document. Returns False when it did not exist."""

    path = normalize_collection_path(collection_path)
    with session_scope() as session:
        row = session.get(DocumentORM, document_id)
        if row is None or row.collection_path != path:
            return False
        session.delete(row)
        return True


__all__ = [
    "create_document",
    "delete_document",
    "list_documents",
    "normalize_collection_path",
    "update_document",
]
