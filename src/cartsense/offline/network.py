"""Network-status observer shared by every consumer in the process."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

import httpx

from cartsense.config import get_settings
from cartsense.remote.http import client_options

logger = logging.getLogger(__name__)

# Called with (online, previous) on every connectivity transition.
Listener = Callable[[bool, bool], None]


class NetworkObserver:
    """Boolean connectivity signal fed by connectivity events.

    The state is sampled once at construction and afterwards changes only through
    ``handle_event``. ``is_offline`` is always the complement of ``is_online``.
    """

    def __init__(
        self,
        *,
        initial: Optional[bool] = None,
        sampler: Optional[Callable[[], bool]] = None,
    ) -> None:
        if initial is None:
            # No way to tell yet; assume online like a freshly loaded client would.
            initial = sampler() if sampler is not None else True
        self._online = bool(initial)
        self._listeners: List[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_offline(self) -> bool:
        return not self._online

    def handle_event(self, online: bool) -> bool:
        """Apply a connectivity event immediately. Returns True when the state changed."""

        previous = self._online
        online = bool(online)
        if online == previous:
            return False

        self._online = online
        logger.info("Network status changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                listener(online, previous)
            except Exception:
                logger.exception("Network listener %r failed", listener)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a transition listener; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


def check_connectivity(base_url: Optional[str], *, timeout: Optional[float] = None) -> bool:
    """Synchronously probe ``{base_url}/health``; without a remote we report online."""

    if not base_url:
        return True
    try:
        response = httpx.get(f"{base_url}/health", **client_options(timeout))
    except httpx.HTTPError as exc:
        logger.debug("Connectivity check against %s failed: %s", base_url, exc)
        return False
    return response.status_code < 500


class ConnectivityProbe:
    """Asynchronous health probe used to generate connectivity events."""

    def __init__(
        self,
        base_url: Optional[str],
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = base_url
        self._client = client
        self._timeout = timeout

    async def __call__(self) -> bool:
        if not self._base_url:
            return True
        url = f"{self._base_url}/health"
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(**client_options(self._timeout)) as client:
                    response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.debug("Connectivity probe against %s failed: %s", self._base_url, exc)
            return False
        return response.status_code < 500


_observer: NetworkObserver | None = None


def get_network_observer() -> NetworkObserver:
    """Return the process-wide observer, creating it on first use."""
    global _observer

    if _observer is None:
        settings = get_settings()
        _observer = NetworkObserver(
            sampler=lambda: check_connectivity(
                settings.remote_base_url, timeout=settings.remote_timeout
            )
        )
    return _observer


def reset_network_observer() -> None:
    """Drop the shared observer (intended for testing)."""
    global _observer
    _observer = None


__all__ = [
    "ConnectivityProbe",
    "Listener",
    "NetworkObserver",
    "check_connectivity",
    "get_network_observer",
    "reset_network_observer",
]
