"""Tests for the TTL query cache."""

import sys

import pytest

from skillswap.cache.query_cache import CacheStats, QueryCache, cached_fetch


class TestQueryCache:
    """Test QueryCache storage and expiry."""

    def test_set_and_get(self, cache):
        cache.set("profile:u1", {"id": "u1"})
        assert cache.get("profile:u1") == {"id": "u1"}

    def test_missing_key_returns_none(self, cache):
        assert cache.get("nope") is None
        assert not cache.has("nope")

    def test_entry_valid_until_exactly_expires_at(self, cache, clock):
        cache.set("k", "v", ttl=60)
        clock.advance(60)
        assert cache.has("k")
        assert cache.get("k") == "v"

    def test_entry_expired_after_ttl(self, cache, clock):
        cache.set("k", "v", ttl=60)
        clock.advance(60.001)
        assert not cache.has("k")
        assert cache.get("k") is None

    def test_expired_entry_deleted_on_get(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(11)
        assert len(cache) == 1
        cache.get("k")
        assert len(cache) == 0

    def test_has_does_not_delete(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(11)
        assert not cache.has("k")
        assert len(cache) == 1

    def test_zero_ttl_uses_default(self, cache, clock):
        cache.set("k", "v", ttl=0)
        clock.advance(299)
        assert cache.get("k") == "v"
        clock.advance(2)
        assert cache.get("k") is None

    def test_set_default_ttl(self, cache, clock):
        cache.set_default_ttl(5)
        assert cache.default_ttl == 5
        cache.set("k", "v")
        clock.advance(6)
        assert cache.get("k") is None

    def test_overwrite_resets_lifetime(self, cache, clock):
        cache.set("k", "old", ttl=10)
        clock.advance(8)
        cache.set("k", "new", ttl=10)
        clock.advance(8)
        assert cache.get("k") == "new"

    def test_remove(self, cache):
        cache.set("k", "v")
        cache.remove("k")
        cache.remove("missing")
        assert cache.get("k") is None

    def test_remove_by_prefix(self, cache):
        cache.set("userSkills:u1:all", 1)
        cache.set("userSkills:u1:offering", 2)
        cache.set("userSkills:u2:all", 3)
        cache.set("profile:u1", 4)

        removed = cache.remove_by_prefix("userSkills:u1")

        assert removed == 2
        assert cache.get("userSkills:u2:all") == 3
        assert cache.get("profile:u1") == 4

    def test_clean_expired(self, cache, clock):
        cache.set("short", 1, ttl=10)
        cache.set("long", 2, ttl=100)
        clock.advance(50)

        assert cache.clean_expired() == 1
        assert len(cache) == 1
        assert cache.get("long") == 2

    def test_stats(self, cache, clock):
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=100)
        cache.set("c", 3, ttl=100)
        clock.advance(50)

        stats = cache.stats()

        assert stats == CacheStats(total=3, expired=1, valid=2)

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0
        assert cache.stats().total == 0


class TestCachedFetch:
    """Test the fetch-through helper."""

    @pytest.mark.asyncio
    async def test_fetches_once_then_serves_cache(self, cache):
        calls = []

        async def fetch():
            calls.append(1)
            return {"rows": [1, 2]}

        first = await cached_fetch("k", fetch, cache=cache)
        second = await cached_fetch("k", fetch, cache=cache)

        assert first == second == {"rows": [1, 2]}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_force_refresh_refetches(self, cache):
        values = iter(["a", "b"])

        async def fetch():
            return next(values)

        assert await cached_fetch("k", fetch, cache=cache) == "a"
        assert await cached_fetch("k", fetch, cache=cache, force_refresh=True) == "b"
        assert cache.get("k") == "b"

    @pytest.mark.asyncio
    async def test_refetches_after_expiry(self, cache, clock):
        values = iter([1, 2])

        async def fetch():
            return next(values)

        assert await cached_fetch("k", fetch, ttl=30, cache=cache) == 1
        clock.advance(31)
        assert await cached_fetch("k", fetch, ttl=30, cache=cache) == 2

    @pytest.mark.asyncio
    async def test_failed_fetch_not_cached(self, cache):
        async def fetch():
            raise RuntimeError("backend down")

        with pytest.raises(RuntimeError, match="backend down"):
            await cached_fetch("k", fetch, cache=cache)
        assert not cache.has("k")

    @pytest.mark.asyncio
    async def test_uses_shared_cache_by_default(self, monkeypatch, clock):
        module = sys.modules["skillswap.cache.query_cache"]

        shared = QueryCache(clock=clock)
        monkeypatch.setattr(module, "query_cache", shared)

        async def fetch():
            return 42

        await cached_fetch("shared:key", fetch)
        assert shared.get("shared:key") == 42
