"""In-memory TTL cache for remote query results.

Entries are keyed by ``prefix:part[:part...]`` strings so that a whole
family of cached queries (for example every cached search, or every query
about one user) can be dropped with a single prefix removal when the
underlying data changes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from skillswap.config import config

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass
class CacheEntry:
    """A cached value and its lifetime."""

    data: Any
    timestamp: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        # Still valid at exactly expires_at
        return now > self.expires_at


@dataclass
class CacheStats:
    """Snapshot of cache occupancy."""

    total: int = 0
    expired: int = 0
    valid: int = 0


class QueryCache:
    """Key/value cache with per-entry time-to-live and prefix invalidation."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache.

        Args:
            default_ttl: Lifetime in seconds for entries stored without one.
            clock: Source of the current time in seconds.
        """
        self._entries: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def set_default_ttl(self, seconds: float) -> None:
        """Change the lifetime used for entries stored without one."""
        self._default_ttl = seconds

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Store data under key. A missing or zero ttl uses the default."""
        now = self._clock()
        lifetime = ttl or self._default_ttl
        self._entries[key] = CacheEntry(data=data, timestamp=now, expires_at=now + lifetime)
        logger.debug(f"[QueryCache] Set: {key} (expires in {lifetime:.0f}s)")

    def get(self, key: str) -> Any:
        """Return cached data, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            logger.debug(f"[QueryCache] Miss (expired): {key}")
            return None

        logger.debug(f"[QueryCache] Hit: {key} (age: {now - entry.timestamp:.0f}s)")
        return entry.data

    def has(self, key: str) -> bool:
        """Whether a valid entry exists for key."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        return not entry.is_expired(self._clock())

    def remove(self, key: str) -> None:
        """Remove an entry if present."""
        self._entries.pop(key, None)
        logger.debug(f"[QueryCache] Removed: {key}")

    def remove_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with prefix.

        Returns:
            Number of entries removed.
        """
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]

        if doomed:
            logger.debug(f"[QueryCache] Removed {len(doomed)} entries with prefix: {prefix}")
        return len(doomed)

    def clean_expired(self) -> int:
        """Drop all expired entries. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(f"[QueryCache] Cleaned {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        """Remove all entries."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            logger.debug(f"[QueryCache] Cleared all {count} entries")

    def stats(self) -> CacheStats:
        """Count valid and expired entries."""
        now = self._clock()
        stats = CacheStats(total=len(self._entries))
        for entry in self._entries.values():
            if entry.is_expired(now):
                stats.expired += 1
            else:
                stats.valid += 1
        return stats

    def __len__(self) -> int:
        return len(self._entries)


# Shared cache used by the data layer
query_cache = QueryCache(default_ttl=config.cache_default_ttl_seconds)


async def cached_fetch(
    key: str,
    fetch: Callable[[], Awaitable[T]],
    *,
    ttl: Optional[float] = None,
    force_refresh: bool = False,
    cache: Optional[QueryCache] = None,
) -> T:
    """Return the cached value for key, or fetch and cache it.

    Args:
        key: Cache key.
        fetch: Coroutine factory producing fresh data.
        ttl: Lifetime for the stored result. Uses the cache default if None.
        force_refresh: Skip the cache lookup and always fetch.
        cache: Cache to use. Uses the shared cache if None.

    Raises:
        Whatever ``fetch`` raises; failed fetches are never cached.
    """
    cache = cache if cache is not None else query_cache

    if not force_refresh and cache.has(key):
        cached = cache.get(key)
        if cached is not None:
            return cached

    try:
        data = await fetch()
    except Exception as e:
        logger.error(f"Error fetching data for key {key}: {e}")
        raise

    cache.set(key, data, ttl)
    return data
