"""Shared pytest fixtures for the CartSense test suite."""

from __future__ import annotations

import itertools
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Tuple

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cartsense.config import get_settings
from cartsense.db.repository import reset_repository_state
from cartsense.errors import RemoteDocumentNotFound, RemoteReadFailed, RemoteWriteFailed
from cartsense.offline.cache import OfflineCache
from cartsense.offline.network import NetworkObserver, reset_network_observer
from cartsense.offline.queue import PendingQueue
from cartsense.offline.storage import reset_offline_storage
from cartsense.server.app import create_app

_ISOLATED_ENV = (
    "CARTSENSE_API_TOKEN",
    "CARTSENSE_REMOTE_BASE_URL",
    "CARTSENSE_USER_ID",
    "CARTSENSE_OFFLINE_STORAGE_ENABLED",
)


class FakeDocumentStore:
    """In-memory remote store recording every call it receives.

    ``fail`` holds ``(action, key)`` pairs that should raise ``RemoteWriteFailed``;
    the key is the document id for update/delete and the item name for create.
    """

    def __init__(self, ids: Optional[Iterable[str]] = None) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        self.fail: set[Tuple[str, str]] = set()
        self.reachable = True
        self._ids = iter(ids) if ids is not None else (f"doc-{n}" for n in itertools.count(1))
        self._sequence = itertools.count(1)

    def _check(self, action: str, key: Optional[str]) -> None:
        if not self.reachable:
            raise RemoteWriteFailed(f"{action} failed: network unreachable")
        if (action, key) in self.fail:
            raise RemoteWriteFailed(f"{action} {key} rejected")

    def documents(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(collection_path, {})

    def seed(self, collection_path: str, document_id: str, **fields: Any) -> None:
        self.documents(collection_path)[document_id] = {**fields, "_seq": next(self._sequence)}

    async def create(self, collection_path: str, document: Mapping[str, Any]) -> str:
        self.calls.append(("create", collection_path, dict(document)))
        self._check("create", document.get("name"))
        document_id = next(self._ids)
        self.documents(collection_path)[document_id] = {
            **dict(document),
            "_seq": next(self._sequence),
        }
        return document_id

    async def update(
        self, collection_path: str, document_id: str, partial: Mapping[str, Any]
    ) -> None:
        self.calls.append(("update", collection_path, (document_id, dict(partial))))
        self._check("update", document_id)
        existing = self.documents(collection_path).get(document_id)
        if existing is None:
            raise RemoteDocumentNotFound(f"Document {document_id} not found")
        existing.update(partial)

    async def delete(self, collection_path: str, document_id: str) -> None:
        self.calls.append(("delete", collection_path, document_id))
        self._check("delete", document_id)
        self.documents(collection_path).pop(document_id, None)

    async def query_ordered_descending_by_creation(
        self, collection_path: str
    ) -> List[Dict[str, Any]]:
        if not self.reachable:
            raise RemoteReadFailed("query failed: network unreachable")
        ordered = sorted(
            self.documents(collection_path).items(),
            key=lambda entry: entry[1]["_seq"],
            reverse=True,
        )
        return [
            {**{k: v for k, v in data.items() if k != "_seq"}, "id": document_id}
            for document_id, data in ordered
        ]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses isolated SQLite databases and fresh shared state."""

    monkeypatch.setenv("CARTSENSE_DATABASE_PATH", str(tmp_path / "test_cartsense.db"))
    monkeypatch.setenv("CARTSENSE_OFFLINE_DATABASE_PATH", str(tmp_path / "test_offline.db"))
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    reset_offline_storage()
    reset_network_observer()
    yield
    reset_network_observer()
    reset_offline_storage()
    reset_repository_state()
    get_settings.cache_clear()


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def remote() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture()
def queue() -> PendingQueue:
    return PendingQueue()


@pytest.fixture()
def cache() -> OfflineCache:
    return OfflineCache()


@pytest.fixture()
def offline_observer() -> NetworkObserver:
    return NetworkObserver(initial=False)


@pytest.fixture()
def online_observer() -> NetworkObserver:
    return NetworkObserver(initial=True)


@pytest.fixture()
def remote_factory():
    """Return the fake store class for tests that need custom ids or subclasses."""

    return FakeDocumentStore
