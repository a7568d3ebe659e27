"""Query result caching."""

from skillswap.cache.query_cache import (
    CacheStats,
    QueryCache,
    cached_fetch,
    query_cache,
)

__all__ = ["CacheStats", "QueryCache", "cached_fetch", "query_cache"]
