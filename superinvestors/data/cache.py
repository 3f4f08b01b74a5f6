"""
Aggregate Cache Module

Explicit time-bounded cache for derived aggregates, keyed by period,
cohort hash and analysis kind.
"""

import hashlib
import logging
import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Sequence, TypeVar

from superinvestors.config.logging import business_logger

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cohort_hash(manager_ids: Sequence[str]) -> str:
    """Stable digest of an ordered cohort."""
    digest = hashlib.sha256("|".join(manager_ids).encode("utf-8"))
    return digest.hexdigest()[:16]


class AggregateCache:
    """
    Thread-safe TTL cache for aggregate results.

    Values are stored only by ``set`` or after ``get_or_compute`` finishes
    its computation, so an interrupted computation never leaves a partial
    entry behind. Concurrent misses may compute the same value twice; the
    results are identical so the last write wins.

    Every write first evicts all expired entries, so keys that are never
    read again do not accumulate.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Default time-to-live in seconds; 0 disables storage
            clock: Monotonic time source, injectable for tests
        """
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._cache: Dict[str, Any] = {}
        self._expires_at: Dict[str, float] = {}

    @staticmethod
    def make_key(kind: str, period: Any, manager_ids: Sequence[str], *extra: Any) -> str:
        """Generate a cache key from analysis kind, period and cohort."""
        key_parts = [kind, str(period), cohort_hash(manager_ids)]
        key_parts.extend(str(arg) for arg in extra)
        return ":".join(key_parts)

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from cache if not expired.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            if key not in self._cache:
                return None

            if self._clock() > self._expires_at[key]:
                del self._cache[key]
                del self._expires_at[key]
                return None

            return self._cache[key]

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """
        Store a completed value.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Lifetime of this entry; the cache default when None,
                and 0 stores nothing
        """
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            if ttl <= 0:
                self._cache.pop(key, None)
                self._expires_at.pop(key, None)
                return
            self._cache[key] = value
            self._expires_at[key] = now + ttl

    def get_or_compute(
        self, key: str, compute: Callable[[], T], ttl_seconds: Optional[int] = None
    ) -> T:
        """
        Return the cached value for ``key`` or compute and store it.

        Exceptions raised by ``compute`` propagate and nothing is stored.
        """
        kind = key.split(":", 1)[0]
        cached = self.get(key)
        if cached is not None:
            business_logger.log_cache_event(kind, key, hit=True)
            return cached

        business_logger.log_cache_event(kind, key, hit=False)
        value = compute()
        self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock.
        expired = [k for k, expires_at in self._expires_at.items() if now > expires_at]
        for key in expired:
            del self._cache[key]
            del self._expires_at[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")

    def clear(self) -> None:
        """Clear all cached data."""
        with self._lock:
            self._cache.clear()
            self._expires_at.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
