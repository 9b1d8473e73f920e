"""Unit tests for the in-memory result cache."""

from datetime import UTC, datetime, timedelta

import pytest

from insights_gateway.services.result_cache import InMemoryResultCache


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryResultCache(ttl_seconds=3600, clock=clock)


def test_get_returns_stored_value(cache):
    cache.set("insights-rust", "fast")
    assert cache.get("insights-rust") == "fast"
    assert "insights-rust" in cache


def test_missing_key_returns_none(cache):
    assert cache.get("insights-unknown") is None
    assert cache.get_metrics()["misses"] == 1


def test_entry_expires_after_ttl(cache, clock):
    cache.set("insights-rust", "fast")

    clock.advance(minutes=59)
    assert cache.get("insights-rust") == "fast"

    clock.advance(minutes=1)
    assert cache.get("insights-rust") is None
    assert "insights-rust" not in cache
    assert len(cache) == 0


def test_ttl_override(cache, clock):
    cache.set("insights-rust", "fast", ttl_override=10)
    clock.advance(seconds=11)
    assert cache.get("insights-rust") is None


def test_set_replaces_and_refreshes_expiry(cache, clock):
    cache.set("insights-rust", "old")
    clock.advance(minutes=30)
    cache.set("insights-rust", "new")
    clock.advance(minutes=45)

    assert cache.get("insights-rust") == "new"


def test_set_drops_expired_entries(cache, clock):
    cache.set("insights-a", "a")
    clock.advance(hours=2)
    cache.set("insights-b", "b")

    assert len(cache) == 1


def test_bounded_cache_evicts_least_recently_used(clock):
    cache = InMemoryResultCache(ttl_seconds=3600, max_entries=2, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert cache.get_metrics()["evictions"] == 1


def test_delete_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert len(cache) == 0


def test_metrics_track_hit_rate(cache):
    cache.set("a", 1)
    cache.get("a")
    cache.get("a")
    cache.get("b")

    metrics = cache.get_metrics()
    assert metrics["hits"] == 2
    assert metrics["misses"] == 1
    assert metrics["hit_rate"] == pytest.approx(2 / 3)
    assert metrics["num_entries"] == 1


def test_zero_ttl_override_expires_immediately(cache):
    cache.set("insights-rust", "fast", ttl_override=0)

    assert cache.get("insights-rust") is None
    assert cache.get_metrics()["expirations"] == 1
