# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.caching",
#   "purpose": "Bounded TTL memo cache with negative caching and per-key single-flight fetches",
#   "sections": [
#     {"id": "cachestats", "name": "CacheStats", "anchor": "class-cachestats", "kind": "class"},
#     {"id": "cacheentry", "name": "CacheEntry", "anchor": "class-cacheentry", "kind": "class"},
#     {"id": "memocache", "name": "MemoCache", "anchor": "class-memocache", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Memo cache used by :class:`BioPortalLookup.client.BioPortalClient`.

Entries live in an ``OrderedDict`` kept in least-recently-used order and
expire a fixed time after insertion. A lookup of a missing key goes through a
single-flight table: the first caller (the leader) runs the fetch with no lock
held, while concurrent callers for the same key wait on the leader's
:class:`concurrent.futures.Future` and receive the same value, or the same
exception. Callers for other keys are never held up by that fetch.

A fetch answering ``NOT_FOUND`` (or ``None``) is cached like any other value
and expires on the same schedule. A fetch that raises is not cached, so the
next caller tries again.

Example:
    >>> cache = MemoCache("terms", max_size=2)
    >>> cache.get_or_fetch("a", lambda: 1)
    1
    >>> cache.get_or_fetch("a", lambda: 2)
    1
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar, Union

from .results import NOT_FOUND, Found, NotFound, Outcome

__all__ = ["CacheStats", "CacheEntry", "MemoCache"]

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_MAX_SIZE = 300_000
DEFAULT_TTL = timedelta(minutes=240)


@dataclass(frozen=True)
class CacheStats:
    """Counters for one :class:`MemoCache`."""

    name: str
    size: int
    hits: int
    misses: int
    fetches: int
    coalesced: int
    evictions: int
    expirations: int

    def as_dict(self) -> Dict[str, Union[str, int]]:
        return asdict(self)


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    outcome: Outcome[V]
    inserted_at: float


class MemoCache(Generic[K, V]):
    """Thread-safe memo cache with LRU bound, TTL, and single-flight misses.

    Args:
        name: Label used in logs and :meth:`stats`.
        max_size: Entries beyond this bound evict the least recently used.
        ttl: Entry lifetime, measured from insertion.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        name: str,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got: {max_size}")
        if ttl.total_seconds() <= 0:
            raise ValueError(f"ttl must be positive, got: {ttl}")
        self.name = name
        self._max_size = max_size
        self._ttl_s = ttl.total_seconds()
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[K, CacheEntry[V]]" = OrderedDict()
        self._in_flight: Dict[K, Future] = {}
        self._hits = 0
        self._misses = 0
        self._fetches = 0
        self._coalesced = 0
        self._evictions = 0
        self._expirations = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self._ttl_s)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.peek(key) is not None  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_or_fetch(
        self, key: K, fetch: Callable[[], Union[V, NotFound, None]]
    ) -> Union[V, NotFound]:
        """Return the cached outcome for ``key``, fetching it once if absent.

        Raises:
            Exception: whatever ``fetch`` raised, for the leader and for every
                caller that was waiting on it.
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                self._hits += 1
                return _unwrap(entry.outcome)
            self._misses += 1
            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[key] = future
                self._fetches += 1
            else:
                self._coalesced += 1

        if not leader:
            return future.result()

        try:
            value = fetch()
        except BaseException as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            logger.debug(
                "cache fetch failed",
                extra={"cache": self.name, "key": str(key), "error": repr(exc)},
            )
            raise

        outcome: Outcome[V] = (
            NOT_FOUND if value is None or value is NOT_FOUND else Found(value)
        )
        with self._lock:
            self._in_flight.pop(key, None)
            self._store(key, outcome)
        result = _unwrap(outcome)
        future.set_result(result)
        return result

    def peek(self, key: K) -> Optional[Union[V, NotFound]]:
        """Return the live cached outcome without fetching; ``None`` if absent."""
        with self._lock:
            entry = self._live_entry(key)
            return None if entry is None else _unwrap(entry.outcome)

    def put(self, key: K, value: Union[V, NotFound, None]) -> None:
        """Insert ``value`` directly, replacing any existing entry."""
        outcome = NOT_FOUND if value is None or value is NOT_FOUND else Found(value)
        with self._lock:
            self._store(key, outcome)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def invalidate(self, key: K) -> bool:
        """Drop ``key``; return whether an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                name=self.name,
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                fetches=self._fetches,
                coalesced=self._coalesced,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    # ------------------------------------------------------------------
    # Internals (caller holds self._lock)
    # ------------------------------------------------------------------

    def _live_entry(self, key: K) -> Optional[CacheEntry[V]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self._ttl_s:
            del self._entries[key]
            self._expirations += 1
            return None
        self._entries.move_to_end(key)
        return entry

    def _store(self, key: K, outcome: Outcome[V]) -> None:
        self._entries[key] = CacheEntry(outcome=outcome, inserted_at=self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)
            self._evictions += 1


def _unwrap(outcome: Outcome[V]) -> Union[V, NotFound]:
    if outcome is NOT_FOUND:
        return NOT_FOUND
    return outcome.value  # type: ignore[union-attr]
