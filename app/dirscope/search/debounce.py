"""Debounced search scheduling.

Rapid successive queries (typing in a search box) collapse into a
single search run after the input settles for ``delay`` seconds.
"""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future

from dirscope.models.entry import FileEntry
from dirscope.models.search import SearchOptions, SearchResult
from dirscope.search.engine import QueryEngine

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class DebouncedSearch:
    """Run only the latest of a burst of searches.

    Every call supersedes the previous pending one: its timer is
    cancelled and its future is cancelled, so waiters receive
    ``CancelledError``. A search that already started is not
    interrupted and resolves normally.

    Args:
        engine: QueryEngine that performs the search.
        delay: Quiet period in seconds before the latest call runs.

    Example:
        >>> debounced = DebouncedSearch(QueryEngine(), delay=0.3)
        >>> debounced("rep", items)
        >>> future = debounced("report", items)
        >>> results = future.result()
    """

    def __init__(self, engine: QueryEngine, delay: float = DEFAULT_DEBOUNCE_SECONDS) -> None:
        self._engine = engine
        self._delay = delay
        self._lock = threading.Lock()
        self._sequence = 0
        self._timer: threading.Timer | None = None
        self._pending: Future[list[SearchResult]] | None = None

    def __call__(
        self,
        query: str,
        items: Iterable[FileEntry],
        options: SearchOptions | None = None,
    ) -> Future[list[SearchResult]]:
        """Schedule a search, superseding any pending one.

        Args:
            query: Query string.
            items: Candidate entries. Materialized immediately.
            options: Search options.

        Returns:
            Future resolving to the ranked results, or cancelled if a
            later call supersedes it before it starts.
        """
        candidates = list(items)
        future: Future[list[SearchResult]] = Future()

        with self._lock:
            self._cancel_pending_locked()
            self._sequence += 1
            sequence = self._sequence
            timer = threading.Timer(
                self._delay, self._fire, args=(sequence, future, query, candidates, options)
            )
            timer.daemon = True
            self._timer = timer
            self._pending = future
            timer.start()

        return future

    def _fire(
        self,
        sequence: int,
        future: Future[list[SearchResult]],
        query: str,
        items: list[FileEntry],
        options: SearchOptions | None,
    ) -> None:
        with self._lock:
            if sequence != self._sequence:
                return
            self._timer = None
            self._pending = None
            # Once running, the future can no longer be cancelled
            if not future.set_running_or_notify_cancel():
                return

        try:
            results = self._engine.search(query, items, options)
        except Exception as e:
            logger.warning("Debounced search for %r failed: %s", query, e)
            future.set_exception(e)
            return
        future.set_result(results)

    def _cancel_pending_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def cancel(self) -> None:
        """Cancel the pending search, if any."""
        with self._lock:
            self._sequence += 1
            self._cancel_pending_locked()

    def dispose(self) -> None:
        """Cancel the pending search before shutdown."""
        self.cancel()
        logger.debug("Debounced search disposed")
