"""Unit tests for the TTL cache behind the dashboard statistics"""

import pytest

from docvault.stats.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=300, clock=clock)


def test_hit_before_expiry(cache, clock):
    cache.set("dashboard", {"users": 3})
    clock.now = 299.9

    assert cache.get("dashboard") == {"users": 3}


def test_expires_at_ttl(cache, clock):
    cache.set("dashboard", {"users": 3})
    clock.now = 300.0

    assert cache.get("dashboard") is None


def test_get_or_set_computes_once_per_ttl(cache, clock):
    calls = []

    def factory():
        calls.append(clock.now)
        return {"computed_at": clock.now}

    assert cache.get_or_set("k", factory) == {"computed_at": 0.0}
    clock.now = 100.0
    assert cache.get_or_set("k", factory) == {"computed_at": 0.0}
    clock.now = 301.0
    assert cache.get_or_set("k", factory) == {"computed_at": 301.0}
    assert calls == [0.0, 301.0]


def test_per_entry_ttl(cache, clock):
    cache.set("short", 1, ttl_seconds=10)
    clock.now = 10.0
    assert cache.get("short") is None


def test_invalidate_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get("b") is None


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)
