"""Result store tests."""

from __future__ import annotations

from market_analyzer.cache import ResultStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_set_then_get_returns_entry():
    clock = FakeClock()
    store = ResultStore(default_ttl_s=60, clock=clock)
    store.set("market_snapshot_btcusdt", {"bias": "WAIT"})
    clock.advance(30)
    entry = store.get("market_snapshot_btcusdt")
    assert entry is not None
    assert entry.data == {"bias": "WAIT"}
    assert entry.age_s(clock()) == 30
    assert entry.cached_at.startswith("2023-11-14")


def test_entries_expire_on_read():
    clock = FakeClock()
    store = ResultStore(default_ttl_s=60, clock=clock)
    store.set("a", 1)
    clock.advance(60)
    assert store.get("a") is not None
    clock.advance(0.1)
    assert store.get("a") is None
    assert store.stats()["total_entries"] == 0


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    store = ResultStore(default_ttl_s=60, clock=clock)
    store.set("short", 1, ttl=5)
    clock.advance(10)
    assert store.get("short") is None


def test_clear_and_clear_all():
    store = ResultStore(clock=FakeClock())
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)
    assert store.clear("a") is True
    assert store.clear("a") is False
    assert store.clear_all() == 2
    assert store.get("b") is None


def test_stats_lists_entries():
    clock = FakeClock()
    store = ResultStore(default_ttl_s=1800, clock=clock)
    store.set("a", 1)
    clock.advance(100)
    stats = store.stats()
    assert stats["total_entries"] == 1
    assert stats["default_ttl_minutes"] == 30.0
    assert stats["entries"] == [{"key": "a", "age_s": 100.0, "expires_in_s": 1700.0}]
