"""
Bounded in-memory LRU cache with per-entry TTL.
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

V = TypeVar("V")

DEFAULT_MAX_SIZE = 500


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    expires_at: float | None  # None = permanent
    key: str

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class MemoryCache(Generic[V]):
    """
    Access-ordered cache: most recently used entries sit at the tail and the
    head is evicted when a new key arrives at capacity.

    Expiry is checked lazily on access; nothing sweeps in the background.
    `get` reorders entries, so every operation takes the lock.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, *, clock: Callable[[], float] = time.monotonic):
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        self._max_size = int(max_size)
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: V, ttl: float | None) -> None:
        """Store `value`; `ttl` of None or <= 0 seconds means never expires."""
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
            expires_at = None if ttl is None or ttl <= 0 else self._clock() + ttl
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at, key=key)

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: Any) -> bool:
        return isinstance(key, str) and self.has(key)

    def _live_entry(self, key: str) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry
