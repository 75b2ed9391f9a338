"""Paginated and batched access to large directories.

Directory listings are loaded once through the DirectoryCache and
sliced into fixed-size pages, each page cached under its own
``(path, page_index, page_size)`` key. Large trees can be streamed
page by page through a restartable lazy sequence, and bulk work over
many entries runs in sequential, bounded-concurrency batches.
"""

import logging
import os
import time
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from dirscope.cache.directory_cache import CacheKey, CacheStats, DirectoryCache, normalize_path
from dirscope.fs.base import Filesystem
from dirscope.models.entry import DirectoryPage, DirectoryStats, FileEntry, ItemCount, SortOrder

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_ITEMS = 1000
DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_DELAY_SECONDS = 0.01

# Rough per-entry cost used for load-time estimates
_MS_PER_ITEM = 2
_MIN_ESTIMATE_MS = 100

_SORT_KEYS: dict[SortOrder, tuple[Callable[[FileEntry], object], bool]] = {
    SortOrder.NAME_ASC: (lambda e: e.name, False),
    SortOrder.NAME_DESC: (lambda e: e.name, True),
    SortOrder.SIZE_ASC: (lambda e: (e.size, e.name), False),
    SortOrder.SIZE_DESC: (lambda e: (e.size, e.name), True),
    SortOrder.MODIFIED_ASC: (lambda e: (e.modified, e.name), False),
    SortOrder.MODIFIED_DESC: (lambda e: (e.modified, e.name), True),
}


def sort_entries(entries: Sequence[FileEntry], order: SortOrder) -> list[FileEntry]:
    """Return entries ordered by ``order``."""
    key, reverse = _SORT_KEYS[order]
    return sorted(entries, key=key, reverse=reverse)  # type: ignore[arg-type]


class PageSequence:
    """Restartable, lazy sequence of name batches for one directory.

    Every iteration starts again at page 0 and loads each page only
    when it is pulled. Iteration stops after the page reporting
    ``has_more=False``; empty pages are not yielded.
    """

    def __init__(self, engine: "PaginationEngine", dir_path: str, page_size: int) -> None:
        self._engine = engine
        self.dir_path = dir_path
        self.page_size = page_size

    def __iter__(self) -> Iterator[list[str]]:
        page_index = 0
        while True:
            page = self._engine.get_page(self.dir_path, page_index, self.page_size)
            if page.items:
                yield list(page.items)
            if not page.has_more:
                return
            page_index += 1

    def pages(self) -> Iterator[DirectoryPage]:
        """Iterate over full DirectoryPage objects instead of name batches."""
        page_index = 0
        while True:
            page = self._engine.get_page(self.dir_path, page_index, self.page_size)
            yield page
            if not page.has_more:
                return
            page_index += 1


class PaginationEngine:
    """Splits directories into pages and runs batched jobs.

    Args:
        filesystem: Filesystem primitives used to read directories.
        cache: Shared DirectoryCache for listings and pages.
        page_size: Default page size.
        max_items: Entry count above which a directory is considered large.
        batch_size: Default number of concurrent workers per batch.
        batch_delay: Default pause in seconds between batches.
        sort_order: Ordering of entries within a listing.
    """

    def __init__(
        self,
        filesystem: Filesystem,
        cache: DirectoryCache,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_items: int = DEFAULT_MAX_ITEMS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        sort_order: SortOrder = SortOrder.NAME_ASC,
    ) -> None:
        if page_size < 1:
            msg = f"page_size must be positive, got {page_size}"
            raise ValueError(msg)
        self._fs = filesystem
        self._cache = cache
        self._page_size = page_size
        self._max_items = max_items
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sort_order = sort_order

    @property
    def page_size(self) -> int:
        """Default page size."""
        return self._page_size

    @property
    def sort_order(self) -> SortOrder:
        """Ordering applied to listings."""
        return self._sort_order

    def set_sort_order(self, order: SortOrder) -> None:
        """Change the listing order.

        Cached pages were sliced in the old order, so the whole cache
        is cleared when the order actually changes.
        """
        if order is self._sort_order:
            return
        self._sort_order = order
        self._cache.clear()

    # =========================================================================
    # Listings and pages
    # =========================================================================

    def _resolve_page_size(self, page_size: int | None) -> int:
        size = self._page_size if page_size is None else page_size
        if size < 1:
            msg = f"page_size must be positive, got {size}"
            raise ValueError(msg)
        return size

    def list_entries(self, dir_path: str) -> list[FileEntry]:
        """Load the full, ordered listing of a directory through the cache.

        Args:
            dir_path: Directory to list.

        Returns:
            Entries ordered by the engine's sort order.

        Raises:
            OSError: If the directory cannot be read.
        """
        path = normalize_path(dir_path)
        return self._cache.get_or_load(
            CacheKey.listing(path),
            lambda: sort_entries(self._fs.list_dir(path), self._sort_order),
        )

    def get_page(
        self,
        dir_path: str,
        page_index: int = 0,
        page_size: int | None = None,
    ) -> DirectoryPage:
        """Get one page of a directory.

        Repeated requests for the same page are served from the cache.
        A directory that cannot be read yields an empty page with
        ``total_count=0`` and ``error`` set; that page is not cached.

        Args:
            dir_path: Directory to page through.
            page_index: Zero-based page index.
            page_size: Entries per page. Defaults to the engine's page size.

        Returns:
            The requested DirectoryPage.

        Raises:
            ValueError: If page_index is negative or page_size is not positive.
        """
        if page_index < 0:
            msg = f"page_index must not be negative, got {page_index}"
            raise ValueError(msg)
        size = self._resolve_page_size(page_size)

        path = normalize_path(dir_path)
        try:
            return self._cache.get_or_load(
                CacheKey.page(path, page_index, size),
                lambda: DirectoryPage.from_names(
                    [entry.name for entry in self.list_entries(path)], page_index, size
                ),
            )
        except OSError as e:
            logger.warning("Failed to load directory page %s:%d: %s", path, page_index, e)
            return DirectoryPage.unreadable(page_index, e.strerror or str(e))

    def lazy_sequence(self, dir_path: str, page_size: int | None = None) -> PageSequence:
        """Create a lazy, restartable sequence of name batches.

        Args:
            dir_path: Directory to stream.
            page_size: Entries per batch. Defaults to the engine's page size.

        Returns:
            PageSequence yielding one list of names per non-empty page.

        Raises:
            ValueError: If page_size is not positive.
        """
        size = self._resolve_page_size(page_size)
        return PageSequence(self, dir_path, size)

    def preload(self, dir_path: str, max_pages: int = 5, page_size: int | None = None) -> int:
        """Warm the cache with the first pages of a directory.

        Small directories are loaded as a single page; large ones up
        to ``max_pages`` pages.

        Args:
            dir_path: Directory to preload.
            max_pages: Maximum pages to load for large directories.
            page_size: Page size. Defaults to the engine's page size.

        Returns:
            Number of pages loaded.

        Raises:
            ValueError: If page_size is not positive.
        """
        size = self._resolve_page_size(page_size)
        stats = self.directory_stats(dir_path)

        if not stats.recommend_pagination:
            self.get_page(dir_path, 0, max(stats.item_count, 1))
            return 1

        total_pages = -(-stats.item_count // size)
        pages_to_load = min(max_pages, total_pages)
        for page_index in range(pages_to_load):
            self.get_page(dir_path, page_index, size)
        return pages_to_load

    # =========================================================================
    # Directory statistics
    # =========================================================================

    def directory_stats(self, dir_path: str) -> DirectoryStats:
        """Summarize a directory's size for pagination decisions.

        Unreadable directories report zero items.

        Args:
            dir_path: Directory to inspect.

        Returns:
            DirectoryStats for the directory.
        """
        path = normalize_path(dir_path)
        try:
            item_count = len(self.list_entries(path))
        except OSError as e:
            logger.warning("Failed to get directory stats for %s: %s", path, e)
            return DirectoryStats(
                item_count=0, is_large=False, recommend_pagination=False, estimated_load_ms=0
            )

        return DirectoryStats(
            item_count=item_count,
            is_large=item_count > self._max_items,
            recommend_pagination=item_count > self._max_items / 2,
            estimated_load_ms=max(_MIN_ESTIMATE_MS, item_count * _MS_PER_ITEM),
        )

    def cache_stats(self) -> CacheStats:
        """Return counters of the underlying cache."""
        return self._cache.stats()

    def count_items(self, dir_path: str, recursive: bool = False, max_depth: int = 3) -> ItemCount:
        """Count files and directories under a path.

        Unreadable subdirectories are skipped with a warning. The
        count bypasses the cache since it usually touches many
        directories only once.

        Args:
            dir_path: Directory to count.
            recursive: Descend into subdirectories.
            max_depth: Maximum recursion depth when recursive.

        Returns:
            ItemCount with file and directory totals.
        """
        files = 0
        directories = 0
        stack: list[tuple[str, int]] = [(normalize_path(dir_path), 0)]

        while stack:
            current, depth = stack.pop()
            try:
                entries = self._fs.list_dir(current)
            except OSError as e:
                logger.warning("Failed to count items in %s: %s", current, e)
                continue
            for entry in entries:
                if entry.is_directory:
                    directories += 1
                    if recursive and depth < max_depth:
                        stack.append((os.path.join(current, entry.name), depth + 1))
                else:
                    files += 1

        return ItemCount(files=files, directories=directories)

    # =========================================================================
    # Batch processing
    # =========================================================================

    def process_batch(
        self,
        items: Sequence[T],
        worker: Callable[[T, int], R],
        batch_size: int | None = None,
        inter_batch_delay: float | None = None,
        progress: Callable[[int, int], None] | None = None,
    ) -> list[R]:
        """Run ``worker`` over items in sequential, concurrent batches.

        Items of one batch run concurrently on at most ``batch_size``
        threads; the next batch starts only after the previous one
        finished and the inter-batch delay elapsed. Results are
        returned in input order regardless of completion order.

        Args:
            items: Items to process.
            worker: Callable receiving ``(item, index)``.
            batch_size: Items per batch. Defaults to the engine's batch size.
            inter_batch_delay: Seconds to pause between batches.
            progress: Optional callback receiving ``(completed, total)``
                after each batch.

        Returns:
            Worker results, one per item, in input order.

        Raises:
            ValueError: If batch_size is not positive.
            Exception: The first worker exception of a failing batch;
                later batches are not started.
        """
        size = self._batch_size if batch_size is None else batch_size
        delay = self._batch_delay if inter_batch_delay is None else inter_batch_delay
        if size < 1:
            msg = f"batch_size must be positive, got {size}"
            raise ValueError(msg)

        total = len(items)
        results: list[R] = []
        if total == 0:
            return results

        total_batches = -(-total // size)
        with ThreadPoolExecutor(
            max_workers=min(size, total), thread_name_prefix="dirscope-batch"
        ) as executor:
            for batch_index in range(total_batches):
                start_index = batch_index * size
                batch = items[start_index : start_index + size]
                futures = [
                    executor.submit(worker, item, start_index + offset)
                    for offset, item in enumerate(batch)
                ]
                results.extend(future.result() for future in futures)

                if progress is not None:
                    progress(len(results), total)

                if batch_index < total_batches - 1 and delay > 0:
                    time.sleep(delay)

        return results
