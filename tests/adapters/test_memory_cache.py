from __future__ import annotations

import pytest

from lib_versioned_config.adapters.cache.memory import InMemoryTagCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = InMemoryTagCache(clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return {"n": len(calls)}

    assert cache.get_or_compute("config.a", 10, ["config"], compute) == {"n": 1}
    clock.now = 9.9
    assert cache.get_or_compute("config.a", 10, ["config"], compute) == {"n": 1}
    clock.now = 10.0
    assert "config.a" not in cache
    assert cache.get_or_compute("config.a", 10, ["config"], compute) == {"n": 2}


def test_invalidate_tag_only_drops_tagged_entries() -> None:
    cache = InMemoryTagCache()
    cache.get_or_compute("config.a", 60, ["config"], lambda: 1)
    cache.get_or_compute("other.b", 60, ["other"], lambda: 2)
    cache.invalidate_tag("config")
    assert "config.a" not in cache
    assert "other.b" in cache
    cache.invalidate_tag("never-used")


def test_cached_values_are_isolated_from_callers() -> None:
    cache = InMemoryTagCache()
    first = cache.get_or_compute("config.a", 60, [], lambda: {"nested": {"v": 1}})
    first["nested"]["v"] = 2
    second = cache.get_or_compute("config.a", 60, [], lambda: {"nested": {"v": 3}})
    assert second == {"nested": {"v": 1}}


def test_failed_compute_stores_nothing() -> None:
    cache = InMemoryTagCache()

    def boom():
        raise RuntimeError("load failed")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("config.a", 60, ["config"], boom)
    assert "config.a" not in cache


def test_enabled_flag() -> None:
    assert InMemoryTagCache().is_enabled() is True
    assert InMemoryTagCache(enabled=False).is_enabled() is False
