"""Error taxonomy for the offline cache, queue, sync engine and remote clients."""

from __future__ import annotations

from typing import Optional


class OfflineSyncError(Exception):
    """Base class for offline subsystem failures."""


class StorageUnavailable(OfflineSyncError):
    """The local persistence medium is absent or could not be opened.

    Callers recover by falling back to remote-only operation.
    """


class RemoteWriteFailed(OfflineSyncError):
    """A remote write (create/update/delete) did not succeed."""

    def __init__(self, message: str, *, operation_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation_id = operation_id


class RemoteDocumentNotFound(RemoteWriteFailed):
    """An update targeted a document the remote store does not have."""


class RemoteReadFailed(OfflineSyncError):
    """Reading from the remote store failed; callers fall back to cached data."""


class QueueCorrupt(OfflineSyncError):
    """A pending-operation record is malformed and cannot be replayed."""

    def __init__(self, operation_id: str, reason: str) -> None:
        super().__init__(f"Corrupt pending operation {operation_id}: {reason}")
        self.operation_id = operation_id
        self.reason = reason


__all__ = [
    "OfflineSyncError",
    "StorageUnavailable",
    "RemoteWriteFailed",
    "RemoteDocumentNotFound",
    "RemoteReadFailed",
    "QueueCorrupt",
]
