"""Tests for the network-status observer and connectivity probes."""

from __future__ import annotations

import asyncio

import httpx

from cartsense.offline.network import (
    ConnectivityProbe,
    NetworkObserver,
    check_connectivity,
    get_network_observer,
    reset_network_observer,
)


def test_initial_state_uses_sampler():
    observer = NetworkObserver(sampler=lambda: False)

    assert observer.is_offline is True
    assert observer.is_online is False


def test_defaults_to_online_without_sampler():
    assert NetworkObserver().is_online is True


def test_listeners_fire_only_on_transitions():
    observer = NetworkObserver(initial=True)
    seen = []
    observer.subscribe(lambda online, previous: seen.append((online, previous)))

    assert observer.handle_event(True) is False
    assert observer.handle_event(False) is True
    assert observer.handle_event(False) is False
    assert observer.handle_event(True) is True

    assert seen == [(False, True), (True, False)]


def test_unsubscribe_and_failing_listener():
    observer = NetworkObserver(initial=False)
    seen = []

    def broken(online, previous):
        raise RuntimeError("listener bug")

    observer.subscribe(broken)
    unsubscribe = observer.subscribe(lambda online, previous: seen.append(online))
    observer.handle_event(True)
    unsubscribe()
    observer.handle_event(False)

    assert seen == [True]
    assert observer.is_offline


def test_shared_observer_is_reused_until_reset():
    observer = get_network_observer()

    assert get_network_observer() is observer
    reset_network_observer()
    assert get_network_observer() is not observer


def test_check_connectivity_without_remote_is_online():
    assert check_connectivity(None) is True


def test_connectivity_probe_reports_health():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "ok"})

    async def probe_with(handler) -> bool:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await ConnectivityProbe("http://remote.test", client=client)()

    assert asyncio.run(probe_with(handler)) is True
    assert asyncio.run(probe_with(lambda request: httpx.Response(503))) is False


def test_connectivity_probe_treats_transport_errors_as_offline():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async def probe() -> bool:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await ConnectivityProbe("http://remote.test", client=client)()

    assert asyncio.run(probe()) is False
