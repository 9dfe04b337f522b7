"""
Cache-through wrapper for rate-limited API calls.

Lookup order: memory tier -> disk tier -> fetch function. Whatever the
fetch returns is written back to the configured tiers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Literal, Protocol, TypeVar

from .disk_cache import DiskCache
from .memory_cache import MemoryCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

LAYER_MEMORY = "memory"
LAYER_DISK = "disk"

FetchFn = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class CachedResult(Generic[T]):
    data: T
    from_cache: bool
    layer: Literal["memory", "disk"] | None = None


class AcquiringLimiter(Protocol):
    async def acquire(self) -> Any: ...

    def get_status(self) -> Any: ...


class SingleFlight:
    """
    Coalesces concurrent misses on the same key into one upstream call.

    Followers await the leader's task; a leader failure is re-raised to every
    waiter. Keys are forgotten as soon as the call settles.
    """

    def __init__(self):
        self._in_flight: dict[str, asyncio.Future] = {}

    async def do(self, key: str, fn: FetchFn[T]) -> T:
        fut = self._in_flight.get(key)
        if fut is not None:
            return await asyncio.shield(fut)

        fut = asyncio.ensure_future(fn())
        self._in_flight[key] = fut
        try:
            return await asyncio.shield(fut)
        finally:
            if self._in_flight.get(key) is fut:
                del self._in_flight[key]

    def __len__(self) -> int:
        return len(self._in_flight)


async def cached_api_call(
    key: str,
    ttl: float | None,
    fetch_fn: FetchFn[T],
    *,
    memory: MemoryCache | None = None,
    persistent: DiskCache | None = None,
    force_refresh: bool = False,
    single_flight: SingleFlight | None = None,
) -> CachedResult[T]:
    """
    Return the cached value for `key`, fetching and storing it on a miss.

    - `ttl` in seconds; None = permanent. Permanent values go to the disk
      tier only.
    - `force_refresh` skips both lookups but still writes the fresh value.
    - Errors from `fetch_fn` propagate unchanged and nothing is cached.
    - Without `single_flight`, concurrent misses on one key each call
      `fetch_fn`.
    - A cached `None` reads as a miss, so a fetch returning `None` runs on
      every call. Disk hits come back through JSON: tuples become lists.
    """
    if not force_refresh and memory is not None:
        value = memory.get(key)
        if value is not None:
            logger.debug("cache hit (memory): %s", key)
            return CachedResult(data=value, from_cache=True, layer=LAYER_MEMORY)

    if not force_refresh and persistent is not None:
        value = persistent.get(key)
        if value is not None:
            logger.debug("cache hit (disk): %s", key)
            if memory is not None and ttl is not None:
                memory.set(key, value, ttl)
            return CachedResult(data=value, from_cache=True, layer=LAYER_DISK)

    logger.debug("cache miss: %s", key)
    if single_flight is not None:
        data = await single_flight.do(key, fetch_fn)
    else:
        data = await fetch_fn()

    if memory is not None and ttl is not None:
        memory.set(key, data, ttl)
    if persistent is not None:
        persistent.set(key, data, ttl)

    return CachedResult(data=data, from_cache=False)


def rate_limited(limiter: AcquiringLimiter, fetch_fn: FetchFn[T]) -> FetchFn[T]:
    """Wrap `fetch_fn` so each upstream call first takes a limiter slot."""

    async def _call() -> T:
        await limiter.acquire()
        return await fetch_fn()

    return _call
