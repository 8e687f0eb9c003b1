"""In-memory cache with TTL support.

Process-local cache for secondary-source fixture lists. One reconciliation
pass per league can hit the same league page several times (fixtures,
today, single match), so each source keeps what it fetched for a short
while instead of re-requesting.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)

# Official fixture lists: short enough that a rescheduled kickoff shows up quickly
OFFICIAL_FIXTURES_TTL = timedelta(minutes=10)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class CacheEntry:
    """A cached value with expiration."""

    value: Any
    expires_at: datetime
    last_accessed: datetime


class TTLCache:
    """Thread-safe in-memory cache with TTL and size limit.

    Features:
    - Time-based expiration (TTL)
    - Maximum size limit with LRU eviction
    - Thread-safe operations
    - Injectable clock for deterministic tests

    Usage:
        cache = TTLCache(default_ttl=timedelta(minutes=10))
        cache.set("key", value)
        result = cache.get("key")  # Returns None if expired
    """

    DEFAULT_MAX_SIZE = 256

    def __init__(
        self,
        default_ttl: timedelta = OFFICIAL_FIXTURES_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        now: Callable[[], datetime] | None = None,
    ):
        self._cache: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._now = now or _utcnow
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Get value if exists and not expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            now = self._now()
            if now > entry.expires_at:
                del self._cache[key]
                return None
            entry.last_accessed = now
            return entry.value

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Set value with optional custom TTL."""
        now = self._now()
        expires_at = now + (ttl or self._default_ttl)

        with self._lock:
            if self._max_size > 0 and key not in self._cache:
                self._evict_if_needed(now)

            self._cache[key] = CacheEntry(
                value=value,
                expires_at=expires_at,
                last_accessed=now,
            )

    def _evict_if_needed(self, now: datetime) -> None:
        """Evict entries if cache is at max size. Called with lock held."""
        expired_keys = [k for k, v in self._cache.items() if now > v.expires_at]
        for key in expired_keys:
            del self._cache[key]

        while self._cache and len(self._cache) >= self._max_size:
            lru_key = min(self._cache.keys(), key=lambda k: self._cache[k].last_accessed)
            del self._cache[lru_key]

    def delete(self, key: str) -> None:
        """Delete a key from cache."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached values."""
        with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        """Current number of entries (including possibly expired)."""
        return len(self._cache)


def make_cache_key(*parts: object) -> str:
    """Create a cache key from parts."""
    return ":".join(str(p) for p in parts)
