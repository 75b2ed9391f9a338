"""Directory and metadata cache with coalesced loading."""

from dirscope.cache.directory_cache import (
    CacheEntry,
    CacheKey,
    CacheKind,
    CacheStats,
    DirectoryCache,
    normalize_path,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheKind",
    "CacheStats",
    "DirectoryCache",
    "normalize_path",
]
