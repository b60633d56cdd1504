"""Tests for TTLCache."""

import pytest

from jat_monitor.services.ttl_cache import TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


class TestTTLCache:
    """Tests for get/set and expiry."""

    def test_get_missing_returns_default(self, cache):
        assert cache.get("missing") is None
        assert cache.get("missing", "fallback") == "fallback"

    def test_set_and_get(self, cache):
        cache.set("tasks:all", [1, 2], ttl=5)
        assert cache.get("tasks:all") == [1, 2]
        assert cache.has("tasks:all")

    def test_entry_expires(self, cache, clock):
        """An entry is gone once its TTL has elapsed."""
        cache.set("key", "value", ttl=5)
        clock.now += 4.9
        assert cache.get("key") == "value"
        clock.now += 0.1
        assert cache.get("key") is None
        assert not cache.has("key")

    def test_falsy_values_cached(self, cache):
        """Empty values are cached like any other."""
        cache.set("key", [], ttl=5)
        assert cache.has("key")
        assert cache.get("key", "default") == []

    def test_delete(self, cache):
        cache.set("key", 1, ttl=5)
        assert cache.delete("key") is True
        assert cache.delete("key") is False

    def test_invalidate_prefix(self, cache):
        """A trailing * removes every key with the prefix."""
        cache.set("tasks:all", 1, ttl=5)
        cache.set("tasks:proj", 2, ttl=5)
        cache.set("sessions", 3, ttl=5)

        assert cache.invalidate("tasks:*") == 2
        assert cache.stats()["keys"] == ["sessions"]

    def test_invalidate_exact(self, cache):
        cache.set("tasks:all", 1, ttl=5)
        assert cache.invalidate("tasks") == 0
        assert cache.invalidate("tasks:all") == 1

    def test_clear(self, cache):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=5)
        cache.clear()
        assert cache.stats() == {"size": 0, "keys": []}

    def test_stats_drops_expired(self, cache, clock):
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=10)
        clock.now += 5
        assert cache.stats() == {"size": 1, "keys": ["long"]}
