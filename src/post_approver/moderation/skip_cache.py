import asyncio
import logging
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL = 60.0


class SkipCache:
    """
    Identifiers of skipped candidates, each hidden from selection for `ttl`
    seconds.

    Entries are never removed explicitly: lookups ignore expired entries and
    the background sweeper (`start_sweeper`) purges them. All access goes
    through one lock so the sweeper and the update loop can share the cache.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        maxsize: int = 100_000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def add(self, identifier: str) -> None:
        with self._lock:
            self._cache[identifier] = True
        logger.info(f"Skipping {identifier} for {self.ttl:.0f}s")

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._cache

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def expire(self) -> int:
        """Drop expired entries, return how many were removed"""
        with self._lock:
            return len(self._cache.expire())

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            removed = self.expire()
            if removed:
                logger.debug(f"Skip cache sweep removed {removed} expired entries")

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> asyncio.Task:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(
                self._sweep_forever(interval), name="skip-cache-sweeper"
            )
        return self._sweeper

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
