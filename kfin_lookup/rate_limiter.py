"""
Multi-tier token-bucket rate limiter for the Korean financial APIs.

Per-second and per-minute buckets throttle bursts; a daily quota is
persisted to disk so restarts within the same KST day keep counting.
"""
from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from dateutil import tz

from .cache_config import CacheConfig
from .io_utils import write_json

logger = logging.getLogger(__name__)

KST = tz.gettz("Asia/Seoul")


class RateLimitExceeded(RuntimeError):
    def __init__(self, message: str, *, api_name: str):
        super().__init__(message)
        self.api_name = api_name


@dataclass(frozen=True)
class RateLimitConfig:
    max_per_second: int
    max_per_minute: int
    max_per_day: int
    retry_after_seconds: float
    max_retries: int


API_RATE_LIMITS: dict[str, RateLimitConfig] = {
    "opendart": RateLimitConfig(
        max_per_second=2, max_per_minute=60, max_per_day=20_000, retry_after_seconds=1.0, max_retries=3
    ),
    "kis": RateLimitConfig(
        max_per_second=5, max_per_minute=100, max_per_day=100_000, retry_after_seconds=0.2, max_retries=3
    ),
    "bok": RateLimitConfig(
        max_per_second=2, max_per_minute=30, max_per_day=50_000, retry_after_seconds=1.0, max_retries=3
    ),
    # dev accounts: the 1,000 "traffic" figure counts data rows, not calls
    "kosis": RateLimitConfig(
        max_per_second=1, max_per_minute=20, max_per_day=10_000, retry_after_seconds=2.0, max_retries=3
    ),
}

NEAR_LIMIT_PERCENT = 80.0


@dataclass(frozen=True)
class AcquireResult:
    remaining_daily: int


@dataclass(frozen=True)
class RateLimiterStatus:
    daily_used: int
    daily_remaining: int
    daily_percent_used: float
    is_near_limit: bool


class TokenBucket:
    """Refills one token per elapsed interval, up to `capacity`."""

    def __init__(self, capacity: int, refill_interval_seconds: float, *, clock: Callable[[], float] = time.monotonic):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = int(capacity)
        self._interval = float(refill_interval_seconds)
        self._clock = clock
        self._tokens = self._capacity
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        intervals = int((now - self._last_refill) // self._interval)
        if intervals > 0:
            self._tokens = min(self._capacity, self._tokens + intervals)
            self._last_refill = now

    def available(self) -> bool:
        self._refill()
        return self._tokens > 0

    def try_consume(self) -> bool:
        if self.available():
            self._tokens -= 1
            return True
        return False

    def time_until_refill(self) -> float:
        if self._tokens > 0:
            return 0.0
        return max(0.0, self._interval - (self._clock() - self._last_refill))


def next_midnight_kst(now: dt.datetime | None = None) -> dt.datetime:
    local = (now or dt.datetime.now(dt.timezone.utc)).astimezone(KST)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0) + dt.timedelta(days=1)
    return midnight.astimezone(dt.timezone.utc)


class RateLimiter:
    def __init__(
        self,
        api_name: str,
        config: RateLimitConfig,
        *,
        state_dir: str | None = None,
        cache_config: CacheConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], dt.datetime] = lambda: dt.datetime.now(dt.timezone.utc),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_name = api_name
        self.config = config
        self._now = now
        self._sleep = sleep
        self._second_bucket = TokenBucket(config.max_per_second, 1.0, clock=clock)
        self._minute_bucket = TokenBucket(config.max_per_minute, 60.0, clock=clock)

        # explicit state_dir wins, then the given config, then KFIN_HOME
        state_root = state_dir or (cache_config or CacheConfig.from_env()).rate_limit_dir
        self.state_file_path = os.path.join(state_root, f"{api_name}.json")

        self._daily_used = 0
        self._reset_at = next_midnight_kst(self._now())
        self._load_daily_quota()

    def _load_daily_quota(self) -> None:
        try:
            with open(self.state_file_path, "r", encoding="utf-8") as f:
                state = json.load(f)
            reset_at = dt.datetime.fromisoformat(state["reset_at"])
            daily_used = int(state["daily_used"])
        except FileNotFoundError:
            return
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring invalid rate limit state %s: %s", self.state_file_path, e)
            return
        if reset_at > self._now():
            self._daily_used = daily_used
            self._reset_at = reset_at

    def _save_daily_quota(self) -> None:
        state = {"daily_used": self._daily_used, "reset_at": self._reset_at.isoformat()}
        try:
            write_json(state, self.state_file_path)
        except OSError as e:
            logger.warning("Failed to save rate limit state for %s: %s", self.api_name, e)

    def _check_daily_reset(self) -> None:
        if self._now() >= self._reset_at:
            self._daily_used = 0
            self._reset_at = next_midnight_kst(self._now())

    async def acquire(self) -> AcquireResult:
        """
        Wait for a per-second and per-minute slot and count one daily request.

        Raises RateLimitExceeded when the daily quota is spent or the buckets
        stay empty for `max_retries` waits.
        """
        self._check_daily_reset()
        if self._daily_used >= self.config.max_per_day:
            raise RateLimitExceeded(
                f"Daily quota exhausted for {self.api_name} ({self.config.max_per_day} requests/day)",
                api_name=self.api_name,
            )

        for _ in range(self.config.max_retries):
            if not self._second_bucket.available():
                await self._sleep(self._second_bucket.time_until_refill())
                continue
            if not self._minute_bucket.available():
                # a minute bucket can need up to 60s; cap each wait
                await self._sleep(min(self._minute_bucket.time_until_refill(), self.config.retry_after_seconds))
                continue

            self._second_bucket.try_consume()
            self._minute_bucket.try_consume()
            self._daily_used += 1
            self._save_daily_quota()
            return AcquireResult(remaining_daily=self.config.max_per_day - self._daily_used)

        raise RateLimitExceeded(
            f"Rate limit retry exhausted for {self.api_name} after {self.config.max_retries} attempts",
            api_name=self.api_name,
        )

    def get_status(self) -> RateLimiterStatus:
        self._check_daily_reset()
        remaining = max(0, self.config.max_per_day - self._daily_used)
        percent = self._daily_used / self.config.max_per_day * 100.0
        return RateLimiterStatus(
            daily_used=self._daily_used,
            daily_remaining=remaining,
            daily_percent_used=percent,
            is_near_limit=percent > NEAR_LIMIT_PERCENT,
        )


def format_budget_alert(api_name: str, status: RateLimiterStatus) -> str | None:
    if not status.is_near_limit:
        return None
    total = status.daily_used + status.daily_remaining
    return (
        f"⚠️  {api_name.upper()} API quota at {status.daily_percent_used:.1f}% "
        f"({status.daily_used}/{total} used)"
    )


def get_rate_limiter_config(api_name: str) -> RateLimitConfig:
    try:
        return API_RATE_LIMITS[api_name]
    except KeyError:
        raise ValueError(f"Unknown API: {api_name}") from None


def create_rate_limiter(
    api_name: str, *, state_dir: str | None = None, cache_config: CacheConfig | None = None
) -> RateLimiter:
    return RateLimiter(
        api_name, get_rate_limiter_config(api_name), state_dir=state_dir, cache_config=cache_config
    )


def create_eval_budget_limiter(
    api_name: str,
    max_requests: int,
    *,
    state_dir: str | None = None,
    cache_config: CacheConfig | None = None,
) -> RateLimiter:
    """Limiter for eval runs: same buckets, daily quota capped at `max_requests`."""
    base = get_rate_limiter_config(api_name)
    cfg = RateLimitConfig(
        max_per_second=base.max_per_second,
        max_per_minute=base.max_per_minute,
        max_per_day=min(int(max_requests), base.max_per_day),
        retry_after_seconds=base.retry_after_seconds,
        max_retries=base.max_retries,
    )
    return RateLimiter(f"{api_name}-eval", cfg, state_dir=state_dir, cache_config=cache_config)
