from src.shared.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_value_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(default_ttl=10, clock=clock)

    cache.set("page:1", ["a"])
    clock.advance(9)
    assert cache.get("page:1") == ["a"]

    clock.advance(1)
    assert cache.get("page:1") is None


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    cache = TTLCache(default_ttl=300, clock=clock)

    cache.set("short", 1, ttl=5)
    cache.set("long", 2)
    clock.advance(6)

    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_clear_expired_reports_removed_count():
    clock = FakeClock()
    cache = TTLCache(default_ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl=100)

    clock.advance(20)

    assert cache.clear_expired() == 1
    assert cache.stats() == {"size": 1, "keys": ["b"]}


def test_delete_and_clear():
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False

    cache.clear()
    assert cache.stats()["size"] == 0
