"""
In-process TTL cache with tag invalidation and single-flight recomputation.

Holds the short-lived values shared by every request (chain tip block number,
gas price). A read after an entry's expiry is a miss; a miss awaits the compute
function, stores its result and returns it. Concurrent callers for the same
missing key share one in-flight computation. Compute failures are never stored
and propagate to every caller waiting on that computation. Cancelling one
caller never cancels the shared computation or the other callers.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

BLOCK_NUMBER_KEY = "block-number"
GAS_PRICE_KEY = "gas-price"

# New blocks arrive roughly every 12 seconds
BLOCK_NUMBER_TTL_SEC = 10.0
GAS_PRICE_TTL_SEC = 30.0


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float
    tags: frozenset[str]


class TTLCache:
    """
    Keyed async cache. Safe under concurrent get_or_compute calls on one event loop.

    Args:
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future] = {}

    async def get_or_compute(
        self,
        key: str,
        ttl_sec: float,
        tags: Iterable[str],
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        value, _ = await self.lookup(key, ttl_sec, tags, compute)
        return value

    async def lookup(
        self,
        key: str,
        ttl_sec: float,
        tags: Iterable[str],
        compute: Callable[[], Awaitable[Any]],
    ) -> tuple[Any, bool]:
        """
        Same contract as get_or_compute; also returns hit=True when this call
        did not run compute itself (live entry, or joined another caller's computation).
        """
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.expires_at:
            return entry.value, True

        pending = self._inflight.get(key)
        if pending is not None:
            return await asyncio.shield(pending), True

        # compute runs in a cache-owned task; a cancelled caller only abandons its shield
        task = asyncio.ensure_future(self._compute_and_store(key, ttl_sec, frozenset(tags), compute))
        self._inflight[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task), False

    async def _compute_and_store(
        self,
        key: str,
        ttl_sec: float,
        tags: frozenset[str],
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            value = await compute()
        except Exception as e:
            logger.debug("cache_compute_failed", key=key, error=str(e))
            raise
        self._entries[key] = _CacheEntry(
            value=value,
            expires_at=self._clock() + ttl_sec,
            tags=tags,
        )
        logger.debug("cache_populated", key=key, ttl_sec=ttl_sec)
        return value

    def _forget(self, key: str, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # mark retrieved so a failure nobody awaited does not warn at GC
            task.exception()

    def invalidate(self, tag: str) -> int:
        """Remove every entry carrying tag. Returns number of entries removed."""
        doomed = [k for k, e in self._entries.items() if tag in e.tags]
        for k in doomed:
            del self._entries[k]
        if doomed:
            logger.info("cache_invalidated", tag=tag, removed=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry.expires_at

    def __len__(self) -> int:
        return len(self._entries)
