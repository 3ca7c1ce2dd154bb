from backend.analytics.cache import ResponseCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_get_and_set():
    cache = ResponseCache(ttl=10)
    assert cache.get("k") is None
    assert cache.get("k", "fallback") == "fallback"
    cache.set("k", [1, 2])
    assert cache.get("k") == [1, 2]


def test_entries_expire():
    clock = FakeClock()
    cache = ResponseCache(ttl=10, clock=clock)
    cache.set("k", "v")

    clock.now = 9.9
    assert cache.get("k") == "v"
    clock.now = 10.0
    assert cache.get("k") is None
    assert len(cache) == 0


def test_get_or_compute_memoizes():
    cache = ResponseCache(ttl=60)
    calls = []

    def compute():
        calls.append(1)
        return {"answer": 42}

    assert cache.get_or_compute("k", compute) == {"answer": 42}
    assert cache.get_or_compute("k", compute) == {"answer": 42}
    assert len(calls) == 1


def test_get_or_compute_caches_falsy_values():
    cache = ResponseCache(ttl=60)
    calls = []
    cache.get_or_compute("empty", lambda: calls.append(1) or [])
    cache.get_or_compute("empty", lambda: calls.append(1) or [])
    assert len(calls) == 1


def test_flush_drops_everything():
    cache = ResponseCache(ttl=60)
    cache.set("a", 1)
    cache.set(("series", "Sinnar"), 2)
    cache.flush()
    assert len(cache) == 0
    assert cache.get("a") is None


def test_flush_during_compute_discards_result():
    cache = ResponseCache(ttl=60)

    def compute():
        cache.flush()
        return "stale"

    assert cache.get_or_compute("k", compute) == "stale"
    assert cache.get("k") is None


def test_default_ttl_from_config():
    from backend.analytics import config
    assert ResponseCache().ttl == config.CACHE_TTL_SECONDS


def test_expired_entries_are_swept_on_write():
    clock = FakeClock()
    cache = ResponseCache(ttl=10, clock=clock)
    for i in range(20):
        cache.set(("series", f"station{i}"), [])
    assert len(cache) == 20

    clock.now = 15.0
    cache.get_or_compute("overview", lambda: ["fresh"])
    assert len(cache) == 1
    assert cache.get("overview") == ["fresh"]
