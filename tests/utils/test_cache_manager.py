import pytest

from stock_tracker.utils.cache_manager import QuoteCache


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(1_000.0)


@pytest.fixture
def cache(clock):
    return QuoteCache(ttl_seconds=60.0, clock=clock)


def test_make_key_is_normalised():
    assert QuoteCache.make_key(" aapl ", "quote") == "AAPL:quote"
    assert QuoteCache.make_key("BRK/B", "series") == "BRK_B:series"


def test_put_then_get(cache):
    entry = cache.put("AAPL:quote", {"price": 1.0})
    assert entry.cached_at == 1_000.0
    assert cache.get("AAPL:quote").data == {"price": 1.0}
    assert cache.exists("AAPL:quote")


def test_missing_key_returns_none(cache):
    assert cache.get("MSFT:quote") is None
    assert not cache.exists("MSFT:quote")


def test_entry_live_at_ttl_boundary(cache, clock):
    cache.put("AAPL:quote", 1)
    clock.now += 60.0
    assert cache.get("AAPL:quote") is not None


def test_expired_entry_is_absent_and_dropped(cache, clock):
    cache.put("AAPL:quote", 1)
    clock.now += 60.5

    assert cache.get("AAPL:quote") is None
    assert len(cache) == 0


def test_put_overwrites_and_resets_age(cache, clock):
    cache.put("AAPL:quote", 1)
    clock.now += 50
    cache.put("AAPL:quote", 2)
    clock.now += 50

    assert cache.get("AAPL:quote").data == 2


def test_invalidate_pattern(cache):
    cache.put("AAPL:quote", 1)
    cache.put("AAPL:series", 2)
    cache.put("MSFT:quote", 3)

    assert cache.invalidate(":quote") == 2
    assert cache.list_cache() == ["AAPL:series"]
    assert cache.invalidate() == 1
    assert len(cache) == 0


def test_invalidate_symbol_only_hits_that_symbol(cache):
    cache.put("AAPL:quote", 1)
    cache.put("AAPL:series", 2)
    cache.put("AAPLX:quote", 3)

    assert cache.invalidate_symbol("aapl") == 2
    assert cache.list_cache() == ["AAPLX:quote"]


def test_backend_info(cache):
    cache.put("AAPL:quote", 1)
    assert cache.backend_info() == "Memory items: 1, TTL: 60.0s"
