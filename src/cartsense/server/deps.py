"""Dependency definitions for the CartSense document API."""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from fastapi import Depends, HTTPException, Request, status

from cartsense.config import get_settings
from cartsense.db.documents import (
    create_document,
    delete_document,
    list_documents,
    update_document,
)
from cartsense.models.documents import Document

DocumentLister = Callable[[str], List[Document]]
DocumentCreator = Callable[[str, Dict[str, Any]], Document]
DocumentUpdater = Callable[[str, str, Dict[str, Any]], Document]
DocumentDeleter = Callable[[str, str], bool]


def get_document_lister() -> DocumentLister:
    """Return the collection query used by the document endpoints."""

    return list_documents


def get_document_creator() -> DocumentCreator:
    return lambda path, payload: create_document(path, payload)


def get_document_updater() -> DocumentUpdater:
    return lambda path, document_id, payload: update_document(path, document_id, payload)


def get_document_deleter() -> DocumentDeleter:
    return lambda path, document_id: delete_document(path, document_id)


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure write requests carry the configured API token when one is set."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = [
    "DocumentCreator",
    "DocumentDeleter",
    "DocumentLister",
    "DocumentUpdater",
    "get_document_creator",
    "get_document_deleter",
    "get_document_lister",
    "get_document_updater",
    "require_api_token",
]
