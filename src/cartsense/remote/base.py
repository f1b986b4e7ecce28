"""Contract of the authoritative remote document store."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from cartsense.models.offline import StoreName

_COLLECTION_TEMPLATES = {
    StoreName.SHOPPING_LIST: "shoppingLists/{user_id}/items",
    StoreName.SAVED_MEALS: "savedMeals/{user_id}/meals",
}


def collection_path(store: StoreName, user_id: str) -> str:
    """Return the remote collection path holding ``store`` documents for ``user_id``."""

    if not user_id:
        raise ValueError("A user id is required to address remote collections")
    return _COLLECTION_TEMPLATES[StoreName(store)].format(user_id=user_id)


@runtime_checkable
class RemoteDocumentStore(Protocol):
    """Async client of the remote document store.

    ``delete`` of an absent document must succeed; ``update`` of an absent
    document raises ``RemoteDocumentNotFound``.
    """

    async def create(self, collection_path: str, document: Mapping[str, Any]) -> str:
        ...

    async def update(
        self, collection_path: str, document_id: str, partial: Mapping[str, Any]
    ) -> None:
        ...

    async def delete(self, collection_path: str, document_id: str) -> None:
        ...

    async def query_ordered_descending_by_creation(
        self, collection_path: str
    ) -> list[dict[str, Any]]:
        ...


__all__ = ["RemoteDocumentStore", "collection_path"]
