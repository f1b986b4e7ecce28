"""User-facing sync indicator and connectivity banner text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cartsense.models.offline import StoreName

from .network import NetworkObserver
from .queue import PendingQueue

OFFLINE_MESSAGE = "You're offline - Changes will sync when connected"
RECONNECTED_MESSAGE = "Back online! Syncing changes..."


def pending_label(count: int) -> str:
    noun = "change" if count == 1 else "changes"
    return f"{count} pending {noun}"


@dataclass(frozen=True)
class SyncIndicator:
    """Snapshot of what the sync badge should show."""

    pending_count: int
    syncing: bool = False

    @property
    def label(self) -> str:
        if self.syncing:
            return "Syncing..."
        if self.pending_count > 0:
            return pending_label(self.pending_count)
        return "All synced"

    def visible(self, *, show_when_synced: bool = False) -> bool:
        return self.syncing or self.pending_count > 0 or show_when_synced


def sync_indicator(
    queue: PendingQueue,
    *,
    collection: Optional[StoreName] = None,
    syncing: bool = False,
) -> SyncIndicator:
    """Build an indicator from the current queue depth."""

    return SyncIndicator(pending_count=queue.count(collection), syncing=syncing)


class ConnectivityBanner:
    """Tracks whether the offline or reconnected banner should be shown."""

    def __init__(self, observer: NetworkObserver) -> None:
        self._observer = observer
        self._was_offline = observer.is_offline
        self._reconnected = False
        self._dismissed = False
        self._unsubscribe = observer.subscribe(self._on_change)

    def _on_change(self, online: bool, previous: bool) -> None:
        if not online:
            self._was_offline = True
            self._dismissed = False
            self._reconnected = False
        elif self._was_offline:
            self._was_offline = False
            self._reconnected = True

    def dismiss(self) -> None:
        """Hide the offline banner until the next time connectivity drops."""

        if self._observer.is_offline:
            self._dismissed = True

    def acknowledge(self) -> None:
        """Clear the reconnected message."""

        self._reconnected = False

    @property
    def message(self) -> Optional[str]:
        if self._observer.is_offline:
            return None if self._dismissed else OFFLINE_MESSAGE
        if self._reconnected:
            return RECONNECTED_MESSAGE
        return None

    def close(self) -> None:
        self._unsubscribe()


__all__ = [
    "OFFLINE_MESSAGE",
    "RECONNECTED_MESSAGE",
    "ConnectivityBanner",
    "SyncIndicator",
    "pending_label",
    "sync_indicator",
]
