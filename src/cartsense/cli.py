"""Command-line interface for the CartSense offline shopping list."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from cartsense.config import get_settings
from cartsense.logging_utils import configure_logging
from cartsense.models.shopping import ShoppingItemCreate
from cartsense.offline.cache import clear_all_offline_data
from cartsense.offline.network import ConnectivityProbe, NetworkObserver, get_network_observer
from cartsense.offline.queue import PendingQueue
from cartsense.offline.runner import SyncRunner
from cartsense.offline.shopping_list import OfflineShoppingList
from cartsense.offline.status import OFFLINE_MESSAGE, sync_indicator
from cartsense.offline.sync import SyncEngine
from cartsense.remote import build_remote_store

app = typer.Typer(help="CartSense shopping list commands that keep working offline.")

_USER_OPTION = typer.Option(None, "--user", help="User id; defaults to CARTSENSE_USER_ID.")
_OFFLINE_OPTION = typer.Option(False, "--offline", help="Treat the network as unavailable.")


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _resolve_user(user: Optional[str]) -> str:
    user_id = user or get_settings().user_id
    if not user_id:
        raise typer.BadParameter("Pass --user or set CARTSENSE_USER_ID.", param_hint="--user")
    return user_id


def _observer(offline: bool) -> NetworkObserver:
    if offline:
        return NetworkObserver(initial=False)
    return get_network_observer()


def _shopping_list(user: Optional[str], offline: bool) -> OfflineShoppingList:
    return OfflineShoppingList(
        build_remote_store(),
        _resolve_user(user),
        observer=_observer(offline),
    )


@app.command("list")
def list_items(
    user: Optional[str] = _USER_OPTION,
    offline: bool = _OFFLINE_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Emit items as JSON."),
) -> None:
    """Show the shopping list, from the cache when offline."""

    shopping = _shopping_list(user, offline)
    items = asyncio.run(shopping.load())

    if as_json:
        typer.echo(json.dumps([item.model_dump(mode="json") for item in items]))
        return

    if shopping.is_offline_mode:
        typer.secho(OFFLINE_MESSAGE, fg=typer.colors.YELLOW)
    for item in items:
        mark = "x" if item.checked else " "
        quantity = f" ({item.quantity})" if item.quantity else ""
        typer.echo(f"[{mark}] {item.name}{quantity}  {item.id}")
    if not items:
        typer.echo("Shopping list is empty.")


@app.command()
def add(
    name: str = typer.Argument(..., help="Item name."),
    quantity: str = typer.Option("", "--quantity", "-q", help="Free-text quantity."),
    user: Optional[str] = _USER_OPTION,
    offline: bool = _OFFLINE_OPTION,
) -> None:
    """Add an item; offline adds are queued until the next sync."""

    shopping = _shopping_list(user, offline)
    item = asyncio.run(shopping.add_item(ShoppingItemCreate(name=name, quantity=quantity)))
    typer.echo(f"Added {item.name} ({item.id})")


@app.command()
def check(
    item_id: str = typer.Argument(..., help="Item id to toggle."),
    user: Optional[str] = _USER_OPTION,
    offline: bool = _OFFLINE_OPTION,
) -> None:
    """Toggle the checked flag of an item."""

    shopping = _shopping_list(user, offline)

    async def _toggle():
        await shopping.load()
        return await shopping.toggle_item_checked(item_id)

    item = asyncio.run(_toggle())
    if item is None:
        typer.secho(f"Unknown item {item_id}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{item.name}: {'checked' if item.checked else 'unchecked'}")


@app.command()
def remove(
    item_id: str = typer.Argument(..., help="Item id to delete."),
    user: Optional[str] = _USER_OPTION,
    offline: bool = _OFFLINE_OPTION,
) -> None:
    """Delete an item from the shopping list."""

    shopping = _shopping_list(user, offline)
    asyncio.run(shopping.delete_item(item_id))
    typer.echo(f"Removed {item_id}")


@app.command()
def sync(user: Optional[str] = _USER_OPTION) -> None:
    """Replay every pending operation against the remote store."""

    engine = SyncEngine(build_remote_store(), PendingQueue(), user_id=user or get_settings().user_id)
    results = asyncio.run(engine.drain_all())
    failed = False
    for result in results:
        typer.echo(f"{result.collection.value}: synced={result.synced} failed={result.failed}")
        for error in result.errors:
            typer.secho(f"  {error}", fg=typer.colors.YELLOW)
        failed = failed or not result.success
    if failed:
        raise typer.Exit(code=1)


@app.command()
def status(offline: bool = _OFFLINE_OPTION) -> None:
    """Show pending changes and connectivity."""

    observer = _observer(offline)
    indicator = sync_indicator(PendingQueue())
    if observer.is_offline:
        typer.secho(OFFLINE_MESSAGE, fg=typer.colors.YELLOW)
    typer.echo(indicator.label)


@app.command("clear-offline")
def clear_offline(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Remove cached data and discard unsynced changes."""

    queue = PendingQueue()
    pending = queue.count()
    if pending and not yes:
        typer.confirm(f"Discard {pending} unsynced change(s)?", abort=True)
    clear_all_offline_data(queue=queue)
    typer.echo("Offline data cleared.")


@app.command()
def watch(
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Override connectivity check interval (seconds)."
    ),
    user: Optional[str] = _USER_OPTION,
) -> None:
    """Probe connectivity and drain the queue whenever the network comes back."""

    settings = get_settings()
    engine = SyncEngine(build_remote_store(), PendingQueue(), user_id=user or settings.user_id)
    runner = SyncRunner(
        engine,
        get_network_observer(),
        probe=ConnectivityProbe(settings.remote_base_url, timeout=settings.remote_timeout),
        interval=interval,
    )

    async def _run() -> None:
        runner.start()
        await runner.tick()
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            runner.stop()

    typer.echo("Watching for connectivity changes. Press Ctrl+C to stop.")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Stopping sync runner…")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point installed as ``cartsense``."""
    app(prog_name="cartsense", args=argv)


if __name__ == "__main__":
    main()
