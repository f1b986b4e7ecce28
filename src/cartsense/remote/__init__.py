"""Clients for the remote document store."""

from typing import Optional

from cartsense.config import Settings, get_settings

from .base import RemoteDocumentStore, collection_path
from .http import HttpDocumentStore, client_options


def build_remote_store(settings: Optional[Settings] = None) -> HttpDocumentStore:
    """Construct the HTTP document store from application settings."""

    settings = settings or get_settings()
    if not settings.remote_base_url:
        raise RuntimeError("Set CARTSENSE_REMOTE_BASE_URL to reach the document store.")
    return HttpDocumentStore(
        settings.remote_base_url,
        token=settings.api_token,
        timeout=settings.remote_timeout,
    )


__all__ = [
    "HttpDocumentStore",
    "RemoteDocumentStore",
    "build_remote_store",
    "client_options",
    "collection_path",
]
