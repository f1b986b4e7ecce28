"""Unit tests for the document store repository helpers."""

from __future__ import annotations

import pytest

from cartsense.db.documents import (
    create_document,
    delete_document,
    list_documents,
    normalize_collection_path,
    update_document,
)


def test_create_and_list_documents_newest_first():
    first = create_document("shoppingLists/u1/items", {"name": "milk"})
    second = create_document("shoppingLists/u1/items", {"name": "bread"})
    create_document("shoppingLists/u2/items", {"name": "eggs"})

    documents = list_documents("shoppingLists/u1/items")
    assert [document.id for document in documents] == [second.id, first.id]
    assert documents[0].data == {"name": "bread"}
    assert documents[0].flatten()["id"] == second.id


def test_create_ignores_reserved_fields():
    document = create_document("savedMeals/u1/meals", {"id": "forged", "title": "Chili"})

    assert document.id != "forged"
    assert document.data == {"title": "Chili"}


def test_update_merges_fields():
    document = create_document("shoppingLists/u1/items", {"name": "milk", "checked": False})

    updated = update_document("shoppingLists/u1/items", document.id, {"checked": True})

    assert updated.data == {"name": "milk", "checked": True}
    assert updated.created_at == document.created_at


def test_update_missing_document_raises():
    with pytest.raises(ValueError):
        update_document("shoppingLists/u1/items", "missing", {"checked": True})


def test_update_in_other_collection_raises():
    document = create_document("shoppingLists/u1/items", {"name": "milk"})

    with pytest.raises(ValueError):
        update_document("shoppingLists/u2/items", document.id, {"checked": True})


def test_delete_document_is_idempotent():
    document = create_document("shoppingLists/u1/items", {"name": "milk"})

    assert delete_document("shoppingLists/u1/items", document.id) is True
    assert delete_document("shoppingLists/u1/items", document.id) is False
    assert list_documents("shoppingLists/u1/items") == []


def test_normalize_collection_path():
    assert normalize_collection_path("/shoppingLists//u1/items/") == "shoppingLists/u1/items"
    with pytest.raises(ValueError):
        normalize_collection_path(" / ")
