"""Tests for draining the pending-operation queue against the remote store."""

from __future__ import annotations

import asyncio

from cartsense.models.offline import StoreName, SyncAction
from cartsense.models.shopping import ShoppingItemCreate
from cartsense.offline.queue import PendingQueue
from cartsense.offline.runner import SyncRunner
from cartsense.offline.storage import OfflineStorage
from cartsense.offline.sync import (
    SyncEngine,
    fetch_shopping_list,
    has_pending,
    pending_count,
    queue_add_item,
    queue_delete_item,
    queue_update_item,
)

ITEMS = "shoppingLists/u1/items"


def test_drain_applies_operations_in_order_and_empties_queue(queue, remote):
    remote.seed(ITEMS, "b", name="bread", checked=False)
    remote.seed(ITEMS, "c", name="cheese")
    queue_add_item(queue, "u1", {"name": "apples"})
    queue_update_item(queue, "u1", "b", {"checked": True})
    queue_delete_item(queue, "u1", "c")

    result = asyncio.run(SyncEngine(remote, queue).drain(StoreName.SHOPPING_LIST))

    assert result.success is True
    assert (result.synced, result.failed, result.errors) == (3, 0, [])
    assert queue.count() == 0
    assert [call[0] for call in remote.calls] == ["create", "update", "delete"]
    assert remote.documents(ITEMS)["b"]["checked"] is True
    assert "c" not in remote.documents(ITEMS)


def test_add_of_new_item_reaches_remote_with_returned_id(queue, remote_factory):
    remote = remote_factory(ids=["abc123"])
    queue.enqueue(
        SyncAction.ADD,
        StoreName.SHOPPING_LIST,
        {"user_id": "u1", "item": {"name": "milk", "quantity": "1 gal"}},
    )

    result = asyncio.run(SyncEngine(remote, queue).drain(StoreName.SHOPPING_LIST))

    assert result.synced == 1
    assert queue.count() == 0
    assert remote.documents(ITEMS)["abc123"]["name"] == "milk"
    assert len(remote.documents(ITEMS)) == 1


def test_failed_operation_stays_queued_while_later_ones_proceed(queue, remote):
    remote.seed(ITEMS, "b", name="bread")
    queue_add_item(queue, "u1", {"name": "apples"})
    failing = queue_update_item(queue, "u1", "b", {"checked": True})
    queue_add_item(queue, "u1", {"name": "carrots"})
    queue_delete_item(queue, "u1", "d")
    remote.fail.add(("update", "b"))

    result = asyncio.run(SyncEngine(remote, queue).drain(StoreName.SHOPPING_LIST))

    assert result.success is False
    assert (result.synced, result.failed) == (3, 1)
    assert len(result.errors) == 1
    assert [operation.id for operation in queue.list_all()] == [failing]


def test_update_of_missing_document_is_a_failure(queue, remote):
    queue_update_item(queue, "u1", "ghost", {"checked": True})

    result = asyncio.run(SyncEngine(remote, queue).drain())

    assert result.failed == 1
    assert queue.count() == 1


def test_delete_of_missing_document_succeeds(queue, remote):
    queue_delete_item(queue, "u1", "ghost")

    result = asyncio.run(SyncEngine(remote, queue).drain())

    assert result.success is True
    assert queue.count() == 0


def test_malformed_operation_is_reported_and_kept(queue, remote):
    queue.enqueue("add", "shoppingList", {"user_id": "u1"})
    queue.enqueue("delete", "shoppingList", {"user_id": "u1"})
    queue_add_item(queue, "u1", {"name": "milk"})

    result = asyncio.run(SyncEngine(remote, queue).drain())

    assert (result.synced, result.failed) == (1, 2)
    assert any("missing item data" in error for error in result.errors)
    assert queue.count() == 2


def test_engine_user_id_fills_in_for_operations_without_one(queue, remote):
    queue.enqueue("add", "savedMeals", {"item": {"title": "Chili"}})

    result = asyncio.run(SyncEngine(remote, queue, user_id="u9").drain(StoreName.SAVED_MEALS))

    assert result.synced == 1
    assert list(remote.documents("savedMeals/u9/meals").values())[0]["title"] == "Chili"


def test_drain_only_touches_the_requested_collection(queue, remote):
    queue_add_item(queue, "u1", {"name": "milk"})
    queue.enqueue("add", "savedMeals", {"user_id": "u1", "item": {"title": "Soup"}})

    asyncio.run(SyncEngine(remote, queue).drain(StoreName.SAVED_MEALS))

    assert queue.count(StoreName.SHOPPING_LIST) == 1
    assert queue.count(StoreName.SAVED_MEALS) == 0


def test_concurrent_drains_share_one_pass(queue, remote_factory):
    class SlowStore(remote_factory):
        async def create(self, collection_path, document):
            await asyncio.sleep(0.01)
            return await super().create(collection_path, document)

    remote = SlowStore()
    queue_add_item(queue, "u1", {"name": "milk"})
    queue_add_item(queue, "u1", {"name": "eggs"})
    engine = SyncEngine(remote, queue)

    async def run_twice():
        return await asyncio.gather(engine.drain(), engine.drain())

    first, second = asyncio.run(run_twice())

    assert first == second
    assert len(remote.calls) == 2
    assert queue.count() == 0


def test_drain_without_medium_is_empty_success(remote):
    queue = PendingQueue(OfflineStorage(None))

    result = asyncio.run(SyncEngine(remote, queue).drain())

    assert result.success is True
    assert result.synced == 0


def test_drain_reports_unopenable_medium(tmp_path, remote):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    queue = PendingQueue(OfflineStorage(blocker / "offline.db"))

    result = asyncio.run(SyncEngine(remote, queue).drain())

    assert result.success is False
    assert result.errors


def test_drain_all_covers_every_collection(queue, remote):
    queue_add_item(queue, "u1", {"name": "milk"})
    queue.enqueue("add", "savedMeals", {"user_id": "u1", "item": {"title": "Soup"}})

    results = asyncio.run(SyncEngine(remote, queue).drain_all())

    assert [result.collection for result in results] == list(StoreName)
    assert queue.count() == 0


def test_reconnect_drains_offline_changes_in_enqueue_order(queue, remote, offline_observer):
    remote.seed(ITEMS, "B", name="bread")
    remote.seed(ITEMS, "C", name="cheese")
    queue_add_item(queue, "u1", ShoppingItemCreate(name="A"))
    queue_update_item(queue, "u1", "B", {"checked": True})
    queue_delete_item(queue, "u1", "C")
    runner = SyncRunner(SyncEngine(remote, queue), offline_observer)
    runner.attach()

    async def reconnect():
        offline_observer.handle_event(True)
        return await runner.wait_idle()

    results = asyncio.run(reconnect())

    assert [call[0] for call in remote.calls] == ["create", "update", "delete"]
    assert remote.calls[0][2] == {"name": "A", "quantity": "", "checked": False}
    assert results[0].synced == 3
    assert queue.count() == 0


def test_queue_helpers_and_fetch(queue, remote):
    assert has_pending(queue) is False
    queue_add_item(queue, "u1", {"id": "ignored", "name": "milk"})
    assert pending_count(queue) == 1
    assert has_pending(queue) is True
    assert queue.list_all()[0].data == {"user_id": "u1", "item": {"name": "milk"}}

    remote.seed(ITEMS, "older", name="rice")
    remote.seed(ITEMS, "newer", name="beans", checked=True)
    items = asyncio.run(fetch_shopping_list(remote, "u1"))

    assert [item.id for item in items] == ["newer", "older"]
    assert items[0].checked is True
