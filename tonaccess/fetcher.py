"""Fleet fetcher: manager HTTP client and the shared snapshot cache."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

import aiohttp

from tonaccess.config import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MANAGER_URL,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_STALE_AFTER,
    DEFAULT_USER_AGENT,
)
from tonaccess.errors import AllNodesStaleError, FetchError
from tonaccess.metrics import MetricsExporter
from tonaccess.node import FleetSnapshot, parse_fleet

logger = logging.getLogger("tonaccess.fetcher")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class FleetSource(Protocol):
    """Protocol for anything that can produce a fresh fleet snapshot."""

    async def fetch(self) -> FleetSnapshot:
        """Fetch the fleet. Raises FetchError on failure."""
        ...


class ManagerFetcher:
    """Fetch the node list from the fleet manager over HTTP."""

    def __init__(
        self,
        url: str = DEFAULT_MANAGER_URL,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Clock | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._user_agent = user_agent
        self._clock = clock or utc_now

    @property
    def url(self) -> str:
        """Return the manager URL."""
        return self._url

    async def fetch(self) -> FleetSnapshot:
        """Perform an HTTP GET and parse the node list."""
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}
        try:
            async with (
                aiohttp.ClientSession(timeout=timeout) as session,
                session.get(self._url, headers=headers) as resp,
            ):
                if resp.status < 200 or resp.status >= 300:
                    msg = f"HTTP {resp.status} from {self._url}"
                    raise FetchError(msg)
                payload = await resp.json(content_type=None)
        except FetchError:
            raise
        except TimeoutError as exc:
            msg = f"fleet manager request to {self._url} timed out"
            raise FetchError(msg) from exc
        except aiohttp.ClientError as exc:
            msg = f"fleet manager request to {self._url} failed: {exc}"
            raise FetchError(msg) from exc
        except ValueError as exc:
            msg = f"fleet manager at {self._url} returned invalid JSON: {exc}"
            raise FetchError(msg) from exc

        return parse_fleet(payload, self._clock())


class FleetCache:
    """Holds the last good fleet snapshot and refreshes it on demand.

    At most one fetch is in flight at a time: concurrent callers wait for the
    same task. A caller that times out or is cancelled stops waiting, but the
    fetch itself runs to completion and only a successful fetch replaces the
    snapshot.
    """

    def __init__(
        self,
        source: FleetSource,
        *,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        stale_after: float = DEFAULT_STALE_AFTER,
        clock: Clock | None = None,
        metrics: MetricsExporter | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._source = source
        self._refresh_interval = refresh_interval
        self._stale_after = stale_after
        self._clock = clock or utc_now
        self._metrics = metrics
        self._log = log or logger

        self._lock = threading.Lock()
        self._snapshot: FleetSnapshot | None = None
        self._inflight: asyncio.Task[FleetSnapshot] | None = None
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def snapshot(self) -> FleetSnapshot | None:
        """Return the cached snapshot without refreshing it."""
        with self._lock:
            return self._snapshot

    @property
    def stale_after(self) -> float:
        """Return the staleness threshold in seconds."""
        return self._stale_after

    def now(self) -> datetime:
        """Return the cache's notion of the current time."""
        return self._clock()

    async def get_snapshot(self, timeout: float | None = None) -> FleetSnapshot:
        """Return a snapshot fit for selection, refreshing it when due.

        Raises FetchError when nothing has been fetched yet and the fetch fails,
        and AllNodesStaleError when the refresh fails and the cached snapshot is
        older than the staleness threshold.
        """
        current = self.snapshot
        if current is not None and current.age(self._clock()) <= self._refresh_interval:
            return current

        try:
            return await self.refresh(timeout=timeout)
        except FetchError as exc:
            current = self.snapshot
            if current is None:
                raise
            age = current.age(self._clock())
            if age > self._stale_after:
                self._log.error("Fleet refresh failed and cached data is %.0fs old: %s", age, exc)
                raise AllNodesStaleError from exc
            self._log.warning("Fleet refresh failed, serving cached snapshot (%.0fs old): %s", age, exc)
            return current

    async def refresh(self, timeout: float | None = None) -> FleetSnapshot:
        """Fetch a new snapshot, joining a fetch already in flight."""
        task = self._inflight
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._fetch_and_store())
            task.add_done_callback(self._on_fetch_done)
            self._inflight = task
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except TimeoutError as exc:
            msg = f"fleet fetch did not complete within {timeout}s"
            raise FetchError(msg) from exc

    async def start(self) -> None:
        """Start the background refresh loop (asyncio)."""
        if self._loop_task is not None:
            return
        self._loop_task = asyncio.create_task(self._run_loop())
        self._log.info("Fleet refresh loop started (every %.0fs)", self._refresh_interval)

    async def stop(self) -> None:
        """Stop the background refresh loop."""
        task, self._loop_task = self._loop_task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self._log.info("Fleet refresh loop stopped")

    async def _run_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except FetchError as exc:
                self._log.warning("Background fleet refresh failed: %s", exc)
            except Exception:
                self._log.exception("Unexpected error in background fleet refresh")
            await asyncio.sleep(self._refresh_interval)

    async def _fetch_and_store(self) -> FleetSnapshot:
        start = time.monotonic()
        try:
            snapshot = await self._source.fetch()
        except Exception:
            if self._metrics is not None:
                self._metrics.observe_fetch(time.monotonic() - start, ok=False)
            raise

        if self._metrics is not None:
            self._metrics.observe_fetch(time.monotonic() - start, ok=True)
            self._metrics.set_snapshot(snapshot)
        with self._lock:
            self._snapshot = snapshot
        self._log.info("Fleet snapshot replaced (%d nodes)", len(snapshot))
        return snapshot

    def _on_fetch_done(self, task: asyncio.Task[FleetSnapshot]) -> None:
        if self._inflight is task:
            self._inflight = None
        # Mark the exception as retrieved when every waiter has gone away.
        if not task.cancelled():
            task.exception()


__all__ = [
    "FleetCache",
    "FleetSource",
    "ManagerFetcher",
    "utc_now",
]
