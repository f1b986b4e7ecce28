"""Integration tests for metrics endpoint."""

from __future__ import annotations

import asyncio

from cartsense.offline.sync import SyncEngine, queue_delete_item


def test_metrics_endpoint_available(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    body = response.content.decode()
    assert "cartsense_http_requests_total" in body


def test_sync_metrics_exported(client, queue, remote):
    queue_delete_item(queue, "u1", "a")
    asyncio.run(SyncEngine(remote, queue).drain())

    body = client.get("/metrics").content.decode()

    assert "cartsense_sync_operations_total" in body
    assert 'result="synced"' in body
