"""
Unit tests for the response cache: TTL, FIFO eviction, fingerprints.
"""

from app.core.cache import ResponseCache, prompt_fingerprint


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestResponseCache:
    def test_get_missing(self) -> None:
        assert ResponseCache().get("nope") is None

    def test_set_then_get(self) -> None:
        cache = ResponseCache()
        cache.set("k", "answer")
        assert cache.get("k") == "answer"
        assert "k" in cache

    def test_expired_entry_dropped(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        cache.set("k", "answer")
        clock.now += 299
        assert cache.get("k") == "answer"
        clock.now += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_fifo_eviction_ignores_reads(self) -> None:
        cache = ResponseCache(max_entries=2)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.get("a")
        cache.set("c", "3")
        assert "a" not in cache
        assert cache.get("b") == "2"
        assert cache.get("c") == "3"

    def test_clear(self) -> None:
        cache = ResponseCache()
        cache.set("a", "1")
        cache.clear()
        assert len(cache) == 0


def test_fingerprint_stable_and_distinct() -> None:
    assert prompt_fingerprint("p") == prompt_fingerprint("p")
    assert prompt_fingerprint("p") != prompt_fingerprint("q")
    assert len(prompt_fingerprint("p")) == 32
