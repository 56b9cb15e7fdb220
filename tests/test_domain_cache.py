"""Tests for the per-process domain cache."""

from app.core.cache import DomainCache


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_put_and_get():
    cache = DomainCache(ttl=60)
    cache.put("acme.com", 7)
    assert cache.get("acme.com") == 7
    assert cache.get("other.com") is None


def test_entries_expire_individually():
    """Each entry ages on its own; a fresh write does not extend older ones."""
    clock = _FakeClock()
    cache = DomainCache(ttl=60, clock=clock)

    cache.put("old.com", 2)
    clock.now += 45
    cache.put("new.com", 3)
    clock.now += 30  # old.com is 75s old, new.com 30s

    assert cache.get("old.com") is None
    assert cache.get("new.com") == 3


def test_entry_valid_at_exact_ttl():
    clock = _FakeClock()
    cache = DomainCache(ttl=60, clock=clock)
    cache.put("acme.com", 4)
    clock.now += 60
    assert cache.get("acme.com") == 4
    clock.now += 0.5
    assert cache.get("acme.com") is None


def test_clear_drops_everything():
    clock = _FakeClock()
    cache = DomainCache(ttl=60, clock=clock)
    cache.put("a.com", 2)
    cache.put("b.com", 3)
    assert len(cache) == 2

    clock.now += 5
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a.com") is None
    assert cache.last_cleared_at == clock.now
