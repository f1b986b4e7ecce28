"""Background driver that drains the queue when connectivity returns."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cartsense.config import get_settings
from cartsense.models.offline import StoreName, SyncResult

from .network import NetworkObserver, get_network_observer
from .sync import SyncEngine

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[bool]]


class RetryBackoff:
    """Exponential delay between retries of drains that left failures behind."""

    def __init__(
        self,
        base_delay: float,
        max_delay: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_delay = base_delay
        self.max_delay = max(max_delay, base_delay)
        self._clock = clock
        self.attempts = 0
        self._next_attempt_at = 0.0

    def ready(self) -> bool:
        return self._clock() >= self._next_attempt_at

    def record_failure(self) -> float:
        """Push the next attempt out and return the delay applied."""

        self.attempts += 1
        delay = min(self.max_delay, self.base_delay * (2 ** (self.attempts - 1)))
        self._next_attempt_at = self._clock() + delay
        return delay

    def reset(self) -> None:
        self.attempts = 0
        self._next_attempt_at = 0.0


class SyncRunner:
    """Drain on every offline-to-online transition and retry on a schedule while online.

    The periodic tick probes connectivity, feeds the result to the observer and,
    when online with work still queued, retries a drain once the backoff allows.
    Nothing is retried while offline.
    """

    def __init__(
        self,
        engine: SyncEngine,
        observer: Optional[NetworkObserver] = None,
        *,
        probe: Optional[Probe] = None,
        interval: Optional[float] = None,
        backoff: Optional[RetryBackoff] = None,
        collections: Sequence[StoreName] = tuple(StoreName),
    ) -> None:
        settings = get_settings()
        self._engine = engine
        self._observer = observer if observer is not None else get_network_observer()
        self._probe = probe
        self._interval = interval if interval is not None else settings.connectivity_check_interval
        self._backoff = backoff or RetryBackoff(
            settings.sync_retry_base_delay, settings.sync_retry_max_delay
        )
        self._collections = tuple(collections)
        self._scheduler: AsyncIOScheduler | None = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pending: Optional[asyncio.Task[List[SyncResult]]] = None
        self.last_results: List[SyncResult] = []

    @property
    def backoff(self) -> RetryBackoff:
        return self._backoff

    @property
    def syncing(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def attach(self) -> None:
        """Listen for connectivity transitions without starting the scheduler."""

        if self._unsubscribe is None:
            self._unsubscribe = self._observer.subscribe(self._on_network_change)

    def start(self) -> None:
        """Attach to the observer and start the periodic tick; needs a running loop."""

        self.attach()
        if self._scheduler is not None:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.tick,
            "interval",
            seconds=self._interval,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Sync runner started (interval=%ss)", self._interval)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Sync runner stopped")

    def _on_network_change(self, online: bool, previous: bool) -> None:
        if not online or previous:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Back online outside an event loop; next tick will drain")
            return
        if self.syncing:
            return
        logger.info("Back online; draining pending operations")
        self._backoff.reset()
        self._pending = loop.create_task(self.sync_now())

    async def wait_idle(self) -> List[SyncResult]:
        """Wait for a transition-triggered drain, if one is running."""

        if self._pending is None:
            return []
        return await self._pending

    async def sync_now(self) -> List[SyncResult]:
        """Drain every collection once and update the retry backoff."""

        results = [await self._engine.drain(collection) for collection in self._collections]
        self.last_results = results
        if all(result.success for result in results):
            self._backoff.reset()
        else:
            delay = self._backoff.record_failure()
            logger.warning(
                "Drain left failed operations; retrying in %.1fs (attempt %s)",
                delay,
                self._backoff.attempts,
            )
        return results

    async def tick(self) -> List[SyncResult]:
        """Probe connectivity, then retry a drain when online with queued work."""

        if self._probe is not None:
            self._observer.handle_event(await self._probe())
        if self._observer.is_offline or self.syncing:
            return []

        queue = self._engine.queue
        if not any(queue.count(collection) for collection in self._collections):
            self._backoff.reset()
            return []
        if not self._backoff.ready():
            return []
        return await self.sync_now()


__all__ = ["Probe", "RetryBackoff", "SyncRunner"]
