"""Tests for the CartSense command-line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from cartsense import cli
from cartsense.config import get_settings
from cartsense.models.offline import StoreName
from cartsense.offline.cache import OfflineCache
from cartsense.offline.queue import PendingQueue

runner = CliRunner()


@pytest.fixture()
def cli_remote(remote, monkeypatch):
    monkeypatch.setenv("CARTSENSE_USER_ID", "u1")
    get_settings.cache_clear()
    monkeypatch.setattr(cli, "build_remote_store", lambda: remote)
    return remote


def test_offline_add_then_sync(cli_remote):
    result = runner.invoke(cli.app, ["add", "milk", "--quantity", "1 gal", "--offline"])
    assert result.exit_code == 0, result.output
    assert "Added milk (temp-" in result.output

    result = runner.invoke(cli.app, ["status", "--offline"])
    assert "1 pending change" in result.output
    assert "You're offline" in result.output

    result = runner.invoke(cli.app, ["sync"])
    assert result.exit_code == 0, result.output
    assert "shoppingList: synced=1 failed=0" in result.output
    assert cli_remote.documents("shoppingLists/u1/items")["doc-1"]["name"] == "milk"


def test_list_outputs_items(cli_remote):
    cli_remote.seed("shoppingLists/u1/items", "a", name="eggs", quantity="12", checked=True)

    result = runner.invoke(cli.app, ["list"])
    assert result.exit_code == 0, result.output
    assert "[x] eggs (12)  a" in result.output

    result = runner.invoke(cli.app, ["list", "--json"])
    assert json.loads(result.stdout)[0]["id"] == "a"


def test_check_and_remove(cli_remote):
    cli_remote.seed("shoppingLists/u1/items", "a", name="eggs")

    result = runner.invoke(cli.app, ["check", "a"])
    assert result.exit_code == 0, result.output
    assert "eggs: checked" in result.output
    assert cli_remote.documents("shoppingLists/u1/items")["a"]["checked"] is True

    result = runner.invoke(cli.app, ["remove", "a"])
    assert result.exit_code == 0
    assert "a" not in cli_remote.documents("shoppingLists/u1/items")


def test_check_unknown_item_fails(cli_remote):
    result = runner.invoke(cli.app, ["check", "missing", "--offline"])
    assert result.exit_code == 1


def test_sync_reports_failures(cli_remote):
    PendingQueue().enqueue(
        "update",
        "shoppingList",
        {"user_id": "u1", "item_id": "ghost", "updates": {"checked": True}},
    )

    result = runner.invoke(cli.app, ["sync"])

    assert result.exit_code == 1
    assert "failed=1" in result.output


def test_clear_offline(cli_remote):
    OfflineCache().put(StoreName.SAVED_MEALS, [{"id": "m1"}])
    PendingQueue().enqueue("delete", "shoppingList", {"user_id": "u1", "item_id": "a"})

    result = runner.invoke(cli.app, ["clear-offline"], input="n\n")
    assert result.exit_code == 1
    assert PendingQueue().count() == 1

    result = runner.invoke(cli.app, ["clear-offline", "--yes"])
    assert result.exit_code == 0
    assert PendingQueue().count() == 0
    assert len(OfflineCache().get_all(StoreName.SAVED_MEALS)) == 0


def test_missing_user_is_reported(remote, monkeypatch):
    monkeypatch.setattr(cli, "build_remote_store", lambda: remote)

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code != 0
