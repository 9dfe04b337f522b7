import pytest

from kfin_lookup.memory_cache import MemoryCache


def test_get_set_roundtrip():
    cache = MemoryCache(10)
    cache.set("a", {"v": 1}, 60)
    assert cache.get("a") == {"v": 1}
    assert cache.get("missing") is None
    assert "a" in cache
    assert len(cache) == 1


def test_evicts_least_recently_inserted_at_capacity():
    cache = MemoryCache(2)
    cache.set("a", 1, None)
    cache.set("b", 2, None)
    cache.set("c", 3, None)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert cache.size == 2


def test_get_refreshes_recency():
    cache = MemoryCache(2)
    cache.set("a", 1, None)
    cache.set("b", 2, None)
    assert cache.get("a") == 1
    cache.set("c", 3, None)
    assert cache.get("a") == 1
    assert cache.get("b") is None


def test_overwrite_existing_key_does_not_evict():
    cache = MemoryCache(2)
    cache.set("a", 1, None)
    cache.set("b", 2, None)
    cache.set("a", 10, None)
    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_ttl_expiry_is_lazy(clock):
    cache = MemoryCache(10, clock=clock)
    cache.set("a", 1, 5)
    clock.advance(5)
    assert cache.get("a") == 1
    clock.advance(0.1)
    assert cache.size == 1
    assert cache.get("a") is None
    assert cache.size == 0


def test_has_drops_expired_entries(clock):
    cache = MemoryCache(10, clock=clock)
    cache.set("a", 1, 1)
    clock.advance(2)
    assert not cache.has("a")
    assert "a" not in cache


@pytest.mark.parametrize("ttl", [None, 0, -1])
def test_non_positive_ttl_is_permanent(clock, ttl):
    cache = MemoryCache(10, clock=clock)
    cache.set("a", 1, ttl)
    clock.advance(10**9)
    assert cache.get("a") == 1


def test_delete_and_clear():
    cache = MemoryCache(10)
    cache.set("a", 1, None)
    cache.set("b", 2, None)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert cache.size == 0


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        MemoryCache(0)
