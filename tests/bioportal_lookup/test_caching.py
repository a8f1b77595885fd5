"""Tests for MemoCache.

Tests cover:
- Hits, misses and negative caching
- TTL expiry and LRU eviction
- Single-flight fetches under concurrency
- Exceptions are not cached
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from BioPortalLookup.caching import MemoCache
from BioPortalLookup.results import NOT_FOUND


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestBasics:
    """Plain memoisation."""

    def test_second_lookup_is_a_hit(self):
        cache = MemoCache("t")
        calls = []
        assert cache.get_or_fetch("k", lambda: calls.append(1) or "v") == "v"
        assert cache.get_or_fetch("k", lambda: calls.append(1) or "other") == "v"
        assert calls == [1]
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.fetches) == (1, 1, 1)

    def test_not_found_is_cached(self):
        """NOT_FOUND and None are both stored as a negative entry."""
        cache = MemoCache("t")
        calls = []

        def _fetch():
            calls.append(1)
            return None

        assert cache.get_or_fetch("missing", _fetch) is NOT_FOUND
        assert cache.get_or_fetch("missing", _fetch) is NOT_FOUND
        assert cache.get_or_fetch("gone", lambda: NOT_FOUND) is NOT_FOUND
        assert calls == [1]
        assert len(cache) == 2

    def test_peek_put_invalidate_clear(self):
        cache = MemoCache("t")
        assert cache.peek("k") is None
        cache.put("k", 1)
        assert cache.peek("k") == 1
        assert "k" in cache
        assert cache.invalidate("k") is True
        assert cache.invalidate("k") is False
        cache.put("a", 1)
        cache.put("b", None)
        assert cache.peek("b") is NOT_FOUND
        cache.clear()
        assert len(cache) == 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            MemoCache("t", max_size=0)
        with pytest.raises(ValueError):
            MemoCache("t", ttl=timedelta(0))


class TestExpiryAndEviction:
    """TTL and size bound."""

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = MemoCache("t", ttl=timedelta(minutes=1), clock=clock)
        values = iter(["first", "second"])
        assert cache.get_or_fetch("k", lambda: next(values)) == "first"
        clock.now = 59.0
        assert cache.get_or_fetch("k", lambda: next(values)) == "first"
        clock.now = 60.0
        assert cache.get_or_fetch("k", lambda: next(values)) == "second"
        assert cache.stats().expirations == 1

    def test_negative_entries_expire_too(self):
        clock = FakeClock()
        cache = MemoCache("t", ttl=timedelta(seconds=10), clock=clock)
        assert cache.get_or_fetch("k", lambda: NOT_FOUND) is NOT_FOUND
        clock.now = 11.0
        assert cache.get_or_fetch("k", lambda: "now present") == "now present"

    def test_access_does_not_extend_ttl(self):
        """Expiry counts from insertion, not from the last read."""
        clock = FakeClock()
        cache = MemoCache("t", ttl=timedelta(seconds=10), clock=clock)
        cache.put("k", 1)
        clock.now = 9.0
        assert cache.peek("k") == 1
        clock.now = 10.5
        assert cache.peek("k") is None

    def test_lru_eviction(self):
        cache = MemoCache("t", max_size=2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.peek("a") == 1
        cache.put("c", 3)
        assert cache.peek("b") is None
        assert cache.peek("a") == 1
        assert cache.peek("c") == 3
        assert cache.stats().evictions == 1


class TestFailures:
    """Fetch exceptions propagate and are not cached."""

    def test_exception_not_cached(self):
        cache = MemoCache("t")

        def _boom():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            cache.get_or_fetch("k", _boom)
        assert cache.peek("k") is None
        assert cache.get_or_fetch("k", lambda: "ok") == "ok"


class TestSingleFlight:
    """Concurrent callers for one key share one fetch."""

    def test_concurrent_callers_share_one_fetch(self):
        cache = MemoCache("t")
        workers = 8
        barrier = threading.Barrier(workers)
        calls = []
        lock = threading.Lock()

        def _fetch():
            with lock:
                calls.append(1)
            time.sleep(0.2)
            return object()

        def _lookup(_):
            barrier.wait()
            return cache.get_or_fetch("k", _fetch)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_lookup, range(workers)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)
        stats = cache.stats()
        assert stats.fetches == 1
        assert stats.hits + stats.coalesced == workers - 1

    def test_waiters_receive_leader_exception(self):
        """Followers see the same exception; the next caller retries."""
        cache = MemoCache("t")
        started = threading.Event()
        release = threading.Event()

        def _failing_fetch():
            started.set()
            release.wait(5)
            raise RuntimeError("boom")

        errors = []

        def _leader():
            try:
                cache.get_or_fetch("k", _failing_fetch)
            except RuntimeError as exc:
                errors.append(exc)

        def _follower():
            try:
                cache.get_or_fetch("k", lambda: "should not run")
            except RuntimeError as exc:
                errors.append(exc)

        leader = threading.Thread(target=_leader)
        leader.start()
        assert started.wait(5)
        follower = threading.Thread(target=_follower)
        follower.start()
        deadline = time.monotonic() + 5
        while cache.stats().coalesced < 1 and time.monotonic() < deadline:
            time.sleep(0.01)
        release.set()
        leader.join(5)
        follower.join(5)

        assert len(errors) == 2
        assert errors[0] is errors[1]
        assert cache.get_or_fetch("k", lambda: "retry") == "retry"

    def test_different_keys_do_not_wait(self):
        """A slow fetch for one key does not block another key."""
        cache = MemoCache("t")
        release = threading.Event()
        started = threading.Event()

        def _slow():
            started.set()
            release.wait(5)
            return "slow"

        thread = threading.Thread(target=lambda: cache.get_or_fetch("slow", _slow))
        thread.start()
        assert started.wait(5)
        start = time.monotonic()
        assert cache.get_or_fetch("fast", lambda: "fast") == "fast"
        assert time.monotonic() - start < 1.0
        release.set()
        thread.join(5)
        assert cache.peek("slow") == "slow"


class TestStats:
    def test_as_dict(self):
        cache = MemoCache("terms")
        cache.get_or_fetch("k", lambda: 1)
        cache.get_or_fetch("k", lambda: 2)
        stats = cache.stats().as_dict()
        assert stats["name"] == "terms"
        assert stats["size"] == 1
        assert (stats["hits"], stats["misses"], stats["fetches"]) == (1, 1, 1)
