"""Tests for the in-memory cache."""

from recipe_nutrition.services.cache import LruTtlCache


def test_cache_returns_stored_value() -> None:
    cache = LruTtlCache()
    cache.set("a", [1, 2], ttl_seconds=60)

    assert cache.get("a") == [1, 2]
    assert cache.get("missing") is None


def test_cache_expires_entries() -> None:
    cache = LruTtlCache()
    cache.set("a", "value", ttl_seconds=0)

    assert cache.get("a") is None
    assert len(cache) == 0


def test_cache_evicts_least_recently_used() -> None:
    cache = LruTtlCache(max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    assert cache.get("a") == 1

    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
