"""
cache.py — TTL Response Cache
==============================

Memoizes expensive district-wide results (overview, rankings, heatmap,
district alerts) keyed by request signature.

Invalidation:
    Entries expire after ``ttl`` seconds and are swept on every write;
    flush() drops everything at once. The service subscribes flush() to
    DataStore mutations, so a cached result is never served after the data
    behind it has changed.
"""

import logging
import threading
import time

from . import config

logger = logging.getLogger("analytics.cache")

_MISSING = object()


class ResponseCache:
    """
    Thread-safe key/value cache with a per-entry time-to-live.

    Attributes:
        ttl (float): Lifetime of an entry in seconds.
        _entries (dict): key -> (expires_at, value).
    """

    def __init__(self, ttl: float = None, clock=time.monotonic):
        """
        Args:
            ttl: Entry lifetime in seconds. Defaults to config.CACHE_TTL_SECONDS.
            clock: Zero-argument callable returning the current time in seconds.
        """
        self.ttl = config.CACHE_TTL_SECONDS if ttl is None else ttl
        self._clock = clock
        self._entries = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get(self, key, default=None):
        """Return the cached value for ``key``, or ``default`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def _store(self, key, value) -> None:
        # Caller holds the lock.
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        self._entries[key] = (now + self.ttl, value)

    def set(self, key, value) -> None:
        """Store ``value`` under ``key``, dropping any entries that have expired."""
        with self._lock:
            self._store(key, value)

    def get_or_compute(self, key, compute):
        """
        Return the cached value for ``key``, computing and storing it on a miss.

        Args:
            key: Request signature (any hashable).
            compute: Zero-argument callable producing the value.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value

        logger.debug(f"Cache miss: {key}")
        generation = self._generation
        value = compute()
        with self._lock:
            # A flush during compute() means the value may be stale.
            if generation == self._generation:
                self._store(key, value)
        return value

    def flush(self) -> None:
        """Drop every entry."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if count:
            logger.info(f"Response cache flushed ({count} entries)")

    def __len__(self) -> int:
        return len(self._entries)
