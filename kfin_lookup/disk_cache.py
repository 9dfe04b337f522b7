"""
SQLite-backed persistent cache with TTL and hit-count bookkeeping.

Rows outlive the process so rate-limited API responses can be reused
across runs. Payloads are stored as JSON text.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS cache_entries (
        key TEXT PRIMARY KEY,
        data TEXT NOT NULL,
        created_at REAL NOT NULL,
        expires_at REAL,
        hit_count INTEGER NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_expires_at ON cache_entries(expires_at)",
)


class CacheInitializationError(RuntimeError):
    pass


@dataclass(frozen=True)
class CacheStats:
    entries: int
    size_bytes: int
    hit_count: int


class DiskCache:
    """
    Durable key/value store.

    Each public method runs as one transaction; a `has` followed by a `set`
    is not atomic as a pair.
    """

    def __init__(self, db_path: str, *, clock: Callable[[], float] = time.time):
        self.db_path = db_path
        self._clock = clock
        self._lock = threading.Lock()

        out_dir = os.path.dirname(os.path.abspath(db_path))
        try:
            os.makedirs(out_dir, exist_ok=True)
        except OSError as e:
            raise CacheInitializationError(f"cannot create cache directory {out_dir}: {e}") from e

        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            with self._conn:
                for stmt in _SCHEMA:
                    self._conn.execute(stmt)
        except sqlite3.Error as e:
            raise CacheInitializationError(f"cannot open cache database {db_path}: {e}") from e
        logger.debug("Disk cache opened at %s", db_path)

    def get(self, key: str) -> Any | None:
        with self._lock, self._conn:
            row = self._conn.execute(
                "SELECT data, expires_at FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            data, expires_at = row
            if self._expired(expires_at):
                self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                return None
            self._conn.execute("UPDATE cache_entries SET hit_count = hit_count + 1 WHERE key = ?", (key,))
        return json.loads(data)

    def set(self, key: str, value: Any, ttl: float | None) -> None:
        """Upsert `value`; `ttl=None` stores a permanent row. Overwrites reset hit_count."""
        now = self._clock()
        expires_at = None if ttl is None else now + ttl
        payload = json.dumps(value, ensure_ascii=False)
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO cache_entries (key, data, created_at, expires_at, hit_count)
                VALUES (?, ?, ?, ?, 0)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    created_at = excluded.created_at,
                    expires_at = excluded.expires_at,
                    hit_count = 0
                """,
                (key, payload, now, expires_at),
            )

    def has(self, key: str) -> bool:
        with self._lock, self._conn:
            row = self._conn.execute("SELECT expires_at FROM cache_entries WHERE key = ?", (key,)).fetchone()
            if row is None:
                return False
            if self._expired(row[0]):
                self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            return cur.rowcount > 0

    def invalidate_by_prefix(self, prefix: str) -> int:
        """Delete every row whose key starts with `prefix`; returns rows removed."""
        with self._lock, self._conn:
            cur = self._conn.execute(
                "DELETE FROM cache_entries WHERE substr(key, 1, length(?)) = ?",
                (prefix, prefix),
            )
            removed = cur.rowcount
        logger.info("Invalidated %d disk cache rows with prefix %r", removed, prefix)
        return removed

    def prune(self) -> int:
        """Delete every expired row; returns rows removed."""
        with self._lock, self._conn:
            cur = self._conn.execute(
                "DELETE FROM cache_entries WHERE expires_at IS NOT NULL AND expires_at < ?",
                (self._clock(),),
            )
            removed = cur.rowcount
        logger.info("Pruned %d expired disk cache rows", removed)
        return removed

    def get_stats(self) -> CacheStats:
        with self._lock:
            entries, size_bytes, hits = self._conn.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(LENGTH(CAST(data AS BLOB))), 0),
                       COALESCE(SUM(hit_count), 0)
                FROM cache_entries
                """
            ).fetchone()
        return CacheStats(entries=int(entries), size_bytes=int(size_bytes), hit_count=int(hits))

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "DiskCache":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and expires_at < self._clock()
