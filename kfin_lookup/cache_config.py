from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from .disk_cache import DiskCache
from .memory_cache import DEFAULT_MAX_SIZE, MemoryCache

_DAY = 24 * 60 * 60
_HOUR = 60 * 60

# TTL policy in seconds; None = permanent
CACHE_TTL = MappingProxyType(
    {
        "PERMANENT": None,  # prior-period financials, closed-day prices
        "LONG": 30 * _DAY,  # company info
        "MEDIUM": 7 * _DAY,  # current-period financials
        "SHORT": _HOUR,  # disclosure search results
        "LIVE": 30,  # intraday price during market hours
        "AFTER_HOURS": _HOUR,  # price after the close
        "CORP_CODE": _DAY,  # corp code / listing mappings
    }
)

DEFAULT_HOME_DIR = "~/.kfin_lookup"


@dataclass(frozen=True)
class CacheConfig:
    home_dir: str = DEFAULT_HOME_DIR
    memory_max_size: int = DEFAULT_MAX_SIZE

    @property
    def root(self) -> Path:
        return Path(self.home_dir).expanduser()

    @property
    def db_path(self) -> str:
        return str(self.root / "cache.sqlite")

    @property
    def corp_codes_path(self) -> str:
        return str(self.root / "corp-codes.json")

    @property
    def rate_limit_dir(self) -> str:
        return str(self.root / "rate-limits")

    @classmethod
    def from_env(cls) -> "CacheConfig":
        raw_size = os.getenv("KFIN_MEMORY_CACHE_SIZE")
        return cls(
            home_dir=os.getenv("KFIN_HOME", DEFAULT_HOME_DIR),
            memory_max_size=int(raw_size) if raw_size else DEFAULT_MAX_SIZE,
        )


@dataclass(frozen=True)
class CacheBundle:
    memory: MemoryCache
    disk: DiskCache

    def close(self) -> None:
        self.disk.close()


def create_default_caches(config: CacheConfig | None = None) -> CacheBundle:
    """Build the memory + disk tiers described by `config` (defaults when None)."""
    cfg = config or CacheConfig()
    return CacheBundle(
        memory=MemoryCache(cfg.memory_max_size),
        disk=DiskCache(cfg.db_path),
    )
