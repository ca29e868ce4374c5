"""
Unit tests for the in-memory TTL cache.
"""

import threading

import pytest

from service_users.app.caching.memory_cache import MemoryCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestMemoryCache:
    """Test cases for MemoryCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        """Create MemoryCache instance."""
        return MemoryCache(default_ttl=600, clock=clock)

    def test_miss_on_empty_cache(self, cache):
        """Test unknown keys are misses."""
        assert cache.try_get("user_1") == (False, None)

    def test_set_then_get(self, cache):
        """Test a stored value is returned while fresh."""
        cache.set("user_1", {"id": 1})

        assert cache.try_get("user_1") == (True, {"id": 1})
        assert "user_1" in cache

    def test_entry_expires_at_absolute_time(self, cache, clock):
        """Test entries expire TTL seconds after they were written."""
        entry = cache.set("users_page_1", [1, 2], ttl=60)

        assert entry.expires_at == clock.now + 60

        clock.advance(59)
        assert cache.try_get("users_page_1") == (True, [1, 2])

        clock.advance(1)
        assert cache.try_get("users_page_1") == (False, None)

    def test_reads_do_not_extend_expiry(self, cache, clock):
        """Test there is no sliding expiration."""
        cache.set("all_users", ["a"], ttl=10)

        for _ in range(3):
            clock.advance(3)
            assert cache.try_get("all_users") == (True, ["a"])

        clock.advance(1)
        assert cache.try_get("all_users") == (False, None)

    def test_expired_entry_is_evicted_on_read(self, cache, clock):
        """Test lazy eviction removes the entry."""
        cache.set("user_1", "u", ttl=1)
        clock.advance(2)

        assert len(cache) == 1
        cache.try_get("user_1")
        assert len(cache) == 0

    def test_last_write_wins(self, cache):
        """Test overwriting a key replaces the value."""
        cache.set("user_1", "first")
        cache.set("user_1", "second")

        assert cache.try_get("user_1") == (True, "second")

    def test_default_ttl_is_used(self, cache, clock):
        """Test set without ttl applies the cache default."""
        cache.set("user_1", "u")

        clock.advance(599)
        assert cache.try_get("user_1") == (True, "u")
        clock.advance(1)
        assert cache.try_get("user_1") == (False, None)

    def test_purge_expired(self, cache, clock):
        """Test explicit purge removes only expired entries."""
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=50)
        clock.advance(10)

        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert cache.try_get("b") == (True, 2)

    def test_stats(self, cache):
        """Test hit and miss counters."""
        cache.set("a", 1)
        cache.try_get("a")
        cache.try_get("missing")

        stats = cache.get_stats()

        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_ratio"] == 0.5

    def test_membership_does_not_touch_stats(self, cache, clock):
        """Test ``in`` checks leave hit and miss counters alone."""
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=50)
        clock.advance(10)

        assert "b" in cache
        assert "a" not in cache
        assert "missing" not in cache

        stats = cache.get_stats()
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_concurrent_writers(self, cache):
        """Test concurrent threads can write and read without losing keys."""
        def writer(offset: int):
            for i in range(200):
                key = f"user_{offset + i}"
                cache.set(key, i)
                cache.try_get(key)

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 800
