import asyncio

import pytest

from kfin_lookup.disk_cache import DiskCache
from kfin_lookup.memory_cache import MemoryCache
from kfin_lookup.orchestrator import SingleFlight, cached_api_call, rate_limited


class CountingFetch:
    def __init__(self, value=None, *, exc: Exception | None = None, yields: int = 0):
        self.value = value if value is not None else {"status": "000", "list": [1, 2]}
        self.exc = exc
        self.yields = yields
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        for _ in range(self.yields):
            await asyncio.sleep(0)
        if self.exc is not None:
            raise self.exc
        return self.value


@pytest.fixture
def tiers(tmp_path):
    memory = MemoryCache(10)
    disk = DiskCache(str(tmp_path / "cache.sqlite"))
    yield memory, disk
    disk.close()


def test_miss_fetches_and_populates_both_tiers(tiers):
    memory, disk = tiers
    fetch = CountingFetch()

    res = asyncio.run(cached_api_call("opendart:list:1", 60, fetch, memory=memory, persistent=disk))
    assert res.data == fetch.value
    assert res.from_cache is False
    assert res.layer is None
    assert fetch.calls == 1
    assert memory.get("opendart:list:1") == fetch.value
    assert disk.get("opendart:list:1") == fetch.value


def test_second_call_hits_memory(tiers):
    memory, disk = tiers
    fetch = CountingFetch()

    asyncio.run(cached_api_call("k", 60, fetch, memory=memory, persistent=disk))
    res = asyncio.run(cached_api_call("k", 60, fetch, memory=memory, persistent=disk))
    assert res.from_cache is True
    assert res.layer == "memory"
    assert fetch.calls == 1


def test_disk_hit_backfills_memory(tiers):
    memory, disk = tiers
    fetch = CountingFetch()
    disk.set("k", {"from": "disk"}, 60)

    res = asyncio.run(cached_api_call("k", 60, fetch, memory=memory, persistent=disk))
    assert res.data == {"from": "disk"}
    assert res.layer == "disk"
    assert fetch.calls == 0
    assert memory.get("k") == {"from": "disk"}


def test_permanent_ttl_skips_memory_tier(tiers):
    memory, disk = tiers
    fetch = CountingFetch()

    asyncio.run(cached_api_call("k", None, fetch, memory=memory, persistent=disk))
    assert memory.get("k") is None
    assert disk.get("k") == fetch.value

    res = asyncio.run(cached_api_call("k", None, fetch, memory=memory, persistent=disk))
    assert res.layer == "disk"
    assert memory.get("k") is None


def test_force_refresh_always_fetches(tiers):
    memory, disk = tiers
    memory.set("k", "stale", 60)
    disk.set("k", "stale", 60)
    fetch = CountingFetch("fresh")

    res = asyncio.run(cached_api_call("k", 60, fetch, memory=memory, persistent=disk, force_refresh=True))
    assert res.data == "fresh"
    assert res.from_cache is False
    assert fetch.calls == 1
    assert memory.get("k") == "fresh"
    assert disk.get("k") == "fresh"


def test_fetch_error_propagates_and_caches_nothing(tiers):
    memory, disk = tiers
    fetch = CountingFetch(exc=RuntimeError("upstream 500"))

    with pytest.raises(RuntimeError, match="upstream 500"):
        asyncio.run(cached_api_call("k", 60, fetch, memory=memory, persistent=disk))
    assert memory.get("k") is None
    assert disk.get("k") is None


def test_works_without_any_tier():
    fetch = CountingFetch("v")
    res = asyncio.run(cached_api_call("k", 60, fetch))
    assert res.data == "v"
    asyncio.run(cached_api_call("k", 60, fetch))
    assert fetch.calls == 2


def test_concurrent_misses_each_fetch_without_single_flight():
    memory = MemoryCache(10)
    fetch = CountingFetch("v", yields=3)

    async def main():
        return await asyncio.gather(*(cached_api_call("k", 60, fetch, memory=memory) for _ in range(3)))

    results = asyncio.run(main())
    assert [r.data for r in results] == ["v", "v", "v"]
    assert fetch.calls == 3


def test_single_flight_coalesces_concurrent_misses():
    memory = MemoryCache(10)
    fetch = CountingFetch("v", yields=3)
    flight = SingleFlight()

    async def main():
        return await asyncio.gather(
            *(cached_api_call("k", 60, fetch, memory=memory, single_flight=flight) for _ in range(3))
        )

    results = asyncio.run(main())
    assert [r.data for r in results] == ["v", "v", "v"]
    assert fetch.calls == 1
    assert len(flight) == 0


def test_single_flight_shares_failures():
    fetch = CountingFetch(exc=ValueError("bad"), yields=2)
    flight = SingleFlight()

    async def main():
        return await asyncio.gather(
            *(cached_api_call("k", 60, fetch, single_flight=flight) for _ in range(2)),
            return_exceptions=True,
        )

    results = asyncio.run(main())
    assert all(isinstance(r, ValueError) for r in results)
    assert fetch.calls == 1
    assert len(flight) == 0


class FakeLimiter:
    def __init__(self):
        self.acquired = 0

    async def acquire(self):
        self.acquired += 1

    def get_status(self):
        return None


def test_rate_limited_acquires_only_on_upstream_calls(tiers):
    memory, disk = tiers
    limiter = FakeLimiter()
    fetch = CountingFetch()
    wrapped = rate_limited(limiter, fetch)

    asyncio.run(cached_api_call("k", 60, wrapped, memory=memory, persistent=disk))
    asyncio.run(cached_api_call("k", 60, wrapped, memory=memory, persistent=disk))
    assert limiter.acquired == 1
    assert fetch.calls == 1


def test_none_result_is_refetched_and_tuples_return_as_lists(tiers):
    memory, disk = tiers
    calls = {"n": 0}

    async def fetch_none():
        calls["n"] += 1
        return None

    asyncio.run(cached_api_call("none", 60, fetch_none, memory=memory, persistent=disk))
    asyncio.run(cached_api_call("none", 60, fetch_none, memory=memory, persistent=disk))
    assert calls["n"] == 2

    async def fetch_tuple():
        return ("00126380", "2024")

    asyncio.run(cached_api_call("tuple", None, fetch_tuple, persistent=disk))
    res = asyncio.run(cached_api_call("tuple", None, fetch_tuple, persistent=disk))
    assert res.layer == "disk"
    assert res.data == ["00126380", "2024"]
