"""Prometheus metrics definitions for CartSense."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "cartsense_http_requests_total",
    "Total number of HTTP requests processed by the CartSense document API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "cartsense_http_request_duration_seconds",
    "Latency of HTTP requests processed by the CartSense document API",
    ["method", "path"],
)

SYNC_OPERATIONS = Counter(
    "cartsense_sync_operations_total",
    "Pending operations replayed against the remote store by result",
    ["collection", "action", "result"],
)

SYNC_DRAIN_DURATION = Histogram(
    "cartsense_sync_drain_duration_seconds",
    "Wall time spent draining the pending-operation queue",
    ["collection"],
)

QUEUE_CORRUPT_RECORDS = Counter(
    "cartsense_queue_corrupt_records_total",
    "Pending-operation records skipped because they could not be decoded",
    ["collection"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SYNC_OPERATIONS",
    "SYNC_DRAIN_DURATION",
    "QUEUE_CORRUPT_RECORDS",
]
