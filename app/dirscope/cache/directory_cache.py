"""Time-to-live cache for directory listings and entry metadata.

Values expire lazily: a read past the expiry time is a miss and drops
the entry. ``get_or_load`` coalesces concurrent loads so that at most
one loader runs per key at any instant; every concurrent caller waits
on the same future and observes the same value or exception.
"""

import logging
import os
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0


class CacheKind(str, Enum):
    """Kind of value stored under a cache key."""

    LISTING = "listing"
    ENTRY = "entry"
    PAGE = "page"
    STATS = "stats"


class CacheKey(NamedTuple):
    """Structured composite cache key.

    Attributes:
        kind: What the value is.
        path: Normalized directory or entry path.
        page_index: Page index for PAGE keys.
        page_size: Page size for PAGE keys.
    """

    kind: CacheKind
    path: str
    page_index: int | None = None
    page_size: int | None = None

    @classmethod
    def listing(cls, path: str) -> "CacheKey":
        return cls(CacheKind.LISTING, normalize_path(path))

    @classmethod
    def entry(cls, path: str) -> "CacheKey":
        return cls(CacheKind.ENTRY, normalize_path(path))

    @classmethod
    def page(cls, path: str, page_index: int, page_size: int) -> "CacheKey":
        return cls(CacheKind.PAGE, normalize_path(path), page_index, page_size)

    @classmethod
    def stats(cls, path: str) -> "CacheKey":
        return cls(CacheKind.STATS, normalize_path(path))


def normalize_path(path: str) -> str:
    """Normalize a path so equivalent spellings share cache keys."""
    return os.path.normpath(os.path.abspath(path))


def _is_under(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


@dataclass(slots=True)
class CacheEntry:
    """A cached value and its expiry time on the cache clock."""

    key: CacheKey
    value: Any
    expires_at: float


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache counters."""

    size: int
    in_flight: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        """Fraction of reads served from the cache."""
        return self.hits / max(self.hits + self.misses, 1)


class DirectoryCache:
    """Keyed TTL cache with coalesced loading.

    A single lock guards both the entry map and the in-flight map.
    Loaders always run outside the lock.

    Args:
        default_ttl: Lifetime in seconds for entries set without a TTL.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._in_flight: dict[CacheKey, Future[Any]] = {}
        # In-flight loads invalidated before they settled; their result is not stored
        self._stale: set[CacheKey] = set()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> Any | None:
        """Return the cached value, or None on a miss or expired entry.

        None is reserved for misses; loaders must not produce it.
        """
        with self._lock:
            return self._get_locked(key)

    def _get_locked(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        """Store a value for ``ttl`` seconds (default TTL if None)."""
        with self._lock:
            self._set_locked(key, value, ttl)

    def _set_locked(self, key: CacheKey, value: Any, ttl: float | None) -> None:
        lifetime = self._default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + lifetime)

    def invalidate(self, key: CacheKey) -> None:
        """Drop a single key; a load in flight for it will not be stored."""
        with self._lock:
            self._entries.pop(key, None)
            if key in self._in_flight:
                self._stale.add(key)

    def invalidate_path(self, path: str) -> int:
        """Drop every key affected by a change at ``path``.

        Removes the path's own keys, keys for anything below it, and
        the listing and page keys of its parent directory, whose
        listing the change altered. Matching loads still in flight
        are marked stale so their result is not stored.

        Args:
            path: Changed file or directory.

        Returns:
            Number of entries removed.
        """
        target = normalize_path(path)
        parent = os.path.dirname(target)

        def affected(key: CacheKey) -> bool:
            if _is_under(key.path, target):
                return True
            return key.path == parent and key.kind is not CacheKind.ENTRY

        with self._lock:
            doomed = [key for key in self._entries if affected(key)]
            for key in doomed:
                del self._entries[key]
            self._stale.update(key for key in self._in_flight if affected(key))
        if doomed:
            logger.debug("Invalidated %d cache entries for %s", len(doomed), target)
        return len(doomed)

    def clear(self) -> None:
        """Drop every entry; loads in flight will not be stored."""
        with self._lock:
            self._entries.clear()
            self._stale.update(self._in_flight)

    def sweep(self) -> int:
        """Reclaim memory held by expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        """Return current size and hit counters."""
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                in_flight=len(self._in_flight),
                hits=self._hits,
                misses=self._misses,
            )

    def get_or_load(
        self,
        key: CacheKey,
        loader: Callable[[], Any],
        ttl: float | None = None,
    ) -> Any:
        """Return the cached value, loading it once if missing.

        If a load for ``key`` is already running, wait for it instead
        of starting another. The in-flight registration is removed
        exactly once after the loader settles. A failing loader raises
        in every waiter, caches nothing, and is retried on the next call.

        Args:
            key: Cache key.
            loader: Zero-argument callable producing the value.
            ttl: Lifetime for the loaded value (default TTL if None).

        Returns:
            The cached or freshly loaded value.

        Raises:
            Exception: Whatever the loader raised.
        """
        with self._lock:
            value = self._get_locked(key)
            if value is not None:
                return value
            future = self._in_flight.get(key)
            owner = future is None
            if future is None:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            return future.result()

        try:
            value = loader()
        except BaseException as e:
            with self._lock:
                del self._in_flight[key]
                self._stale.discard(key)
            future.set_exception(e)
            raise

        with self._lock:
            del self._in_flight[key]
            if key in self._stale:
                self._stale.discard(key)
                logger.debug("Discarding stale load for %s", key.path)
            else:
                self._set_locked(key, value, ttl)
        future.set_result(value)
        return value
