"""Composition root for the explorer engine.

ExplorerEngine builds and owns the cache, pagination, query and
journal services from one EngineConfig, runs their periodic
maintenance on daemon threads, and tears everything down on dispose.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from types import TracebackType

from dirscope.cache.directory_cache import DirectoryCache, normalize_path
from dirscope.core.config import EngineConfig
from dirscope.core.paths import ensure_backup_dir
from dirscope.fs.base import Filesystem
from dirscope.fs.local import LocalFilesystem
from dirscope.fs.operations import FileOperationService
from dirscope.journal.journal import OperationJournal
from dirscope.models.entry import DirectoryPage, FileEntry
from dirscope.models.search import SearchOptions, SearchResult
from dirscope.pagination.engine import PageSequence, PaginationEngine
from dirscope.search.debounce import DebouncedSearch
from dirscope.search.engine import QueryEngine

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a callable every ``interval`` seconds on a daemon thread.

    Exceptions raised by the callable are logged and the schedule
    continues.

    Args:
        name: Thread name, also used in log messages.
        interval: Seconds between runs.
        action: Zero-argument callable to run.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], object]) -> None:
        self.name = name
        self._interval = interval
        self._action = action
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Check if the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. Starting twice is a no-op."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._action()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)

    def stop(self, timeout: float | None = 1.0) -> None:
        """Signal the worker to stop and wait for it briefly."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


class ExplorerEngine:
    """Owns and wires every engine service.

    Args:
        config: Engine configuration. Defaults to EngineConfig().
        filesystem: Filesystem primitives. Defaults to the local disk.

    Example:
        >>> with ExplorerEngine() as engine:
        ...     page = engine.get_page("/var/log")
        ...     results = engine.search("syslog", engine.list_entries("/var/log"))
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        filesystem: Filesystem | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.filesystem = filesystem or LocalFilesystem()

        self.cache = DirectoryCache(default_ttl=self.config.cache_ttl_seconds)
        self.pagination = PaginationEngine(
            self.filesystem,
            self.cache,
            page_size=self.config.page_size,
            max_items=self.config.max_items,
            batch_size=self.config.batch_size,
            batch_delay=self.config.batch_delay_seconds,
        )
        self.query = QueryEngine(history_size=self.config.search_history_size)
        self.debounced = DebouncedSearch(self.query, delay=self.config.search_debounce_seconds)
        self.journal = OperationJournal(
            self.filesystem,
            str(self.config.effective_backup_dir),
            max_history_size=self.config.journal_max_history,
            enable_backups=self.config.enable_backups,
            cleanup_age_seconds=self.config.cleanup_age_seconds,
            snapshot_threshold_bytes=self.config.snapshot_threshold_bytes,
        )
        self.operations = FileOperationService(self.filesystem, self.journal, self.cache)

        self._tasks = [
            PeriodicTask(
                "dirscope-cache-sweep", self.config.cache_sweep_interval_seconds, self.cache.sweep
            ),
            PeriodicTask(
                "dirscope-journal-cleanup",
                self.config.cleanup_interval_seconds,
                self.journal.cleanup_expired,
            ),
        ]
        self._disposed = False

    def __enter__(self) -> "ExplorerEngine":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def start(self) -> None:
        """Start periodic cache sweeps and journal cleanup."""
        if self._disposed:
            msg = "Engine has been disposed"
            raise RuntimeError(msg)
        if self.config.enable_backups:
            try:
                ensure_backup_dir(self.config.effective_backup_dir)
            except RuntimeError as e:
                logger.warning("Deletions will not be backed up: %s", e)
        for task in self._tasks:
            task.start()
        logger.debug("Engine started")

    def dispose(self) -> None:
        """Stop background work and release every service. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for task in self._tasks:
            task.stop()
        self.debounced.dispose()
        self.cache.clear()
        self.journal.dispose()
        logger.debug("Engine disposed")

    # =========================================================================
    # Browsing
    # =========================================================================

    def list_entries(self, dir_path: str) -> list[FileEntry]:
        """Full ordered listing of a directory (raises OSError)."""
        return self.pagination.list_entries(dir_path)

    def get_page(
        self, dir_path: str, page_index: int = 0, page_size: int | None = None
    ) -> DirectoryPage:
        """One page of a directory."""
        return self.pagination.get_page(dir_path, page_index, page_size)

    def lazy_sequence(self, dir_path: str, page_size: int | None = None) -> PageSequence:
        """Lazy, restartable name batches of a directory."""
        return self.pagination.lazy_sequence(dir_path, page_size)

    def invalidate(self, path: str) -> int:
        """Drop cached data affected by a change at ``path``."""
        return self.cache.invalidate_path(normalize_path(path))

    def invalidate_all(self) -> None:
        """Drop every cached listing and page."""
        self.cache.clear()

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        query: str,
        items: Iterable[FileEntry],
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Rank entries against a query."""
        return self.query.search(query, items, options)

    def debounced_search(
        self,
        query: str,
        items: Iterable[FileEntry],
        options: SearchOptions | None = None,
    ) -> Future[list[SearchResult]]:
        """Schedule a search that later calls supersede."""
        return self.debounced(query, items, options)

    # =========================================================================
    # Journal
    # =========================================================================

    def record_copy(self, source_paths: Iterable[str], target_directory: str) -> str:
        return self.journal.record_copy(source_paths, target_directory)

    def record_move(self, source_paths: Iterable[str], target_directory: str) -> str:
        return self.journal.record_move(source_paths, target_directory)

    def record_delete(self, paths: Iterable[str]) -> str:
        return self.journal.record_delete(paths)

    def record_rename(self, original_path: str, new_path: str) -> str:
        return self.journal.record_rename(original_path, new_path)

    def record_create(self, created_path: str, initial_content: str | None = None) -> str:
        return self.journal.record_create(created_path, initial_content)

    def record_create_folder(self, created_path: str) -> str:
        return self.journal.record_create_folder(created_path)

    def undo(self, operation_id: str) -> None:
        """Reverse an operation and drop every cached listing.

        Raises:
            JournalError: If the operation cannot be undone.
            IOFailureError: If a filesystem step fails.
        """
        try:
            self.journal.undo(operation_id)
        finally:
            # Partial undo progress also changes listings
            self.cache.clear()
