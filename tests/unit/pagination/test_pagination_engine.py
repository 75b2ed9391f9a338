"""Unit tests for the pagination engine.

Tests for page slicing, lazy sequences, directory statistics and
batch processing.
"""

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from dirscope.cache.directory_cache import DirectoryCache
from dirscope.fs.local import LocalFilesystem
from dirscope.models.entry import SortOrder
from dirscope.pagination.engine import PaginationEngine, sort_entries


@pytest.fixture
def spy_fs() -> MagicMock:
    """LocalFilesystem wrapped in a mock that records calls."""
    return MagicMock(wraps=LocalFilesystem())


@pytest.fixture
def engine(spy_fs: MagicMock) -> PaginationEngine:
    """Pagination engine with a page size of 10 and no batch delay."""
    return PaginationEngine(spy_fs, DirectoryCache(), page_size=10, batch_delay=0)


class TestGetPage:
    """Tests for get_page."""

    def test_pages_of_twenty_five_entries(self, engine: PaginationEngine, populated_dir: Path) -> None:
        """25 entries in pages of 10 give 10, 10 and 5 items."""
        pages = [engine.get_page(str(populated_dir), i) for i in range(3)]

        assert [len(p.items) for p in pages] == [10, 10, 5]
        assert [p.has_more for p in pages] == [True, True, False]
        assert all(p.total_count == 25 for p in pages)
        assert pages[0].items[0] == "file_00.txt"
        assert pages[2].items[-1] == "file_24.txt"

    def test_page_past_end_is_empty(self, engine: PaginationEngine, populated_dir: Path) -> None:
        """A page beyond the last one is empty and has no more entries."""
        page = engine.get_page(str(populated_dir), 7)

        assert page.items == ()
        assert page.has_more is False
        assert page.total_count == 25

    def test_repeated_page_served_from_cache(
        self, engine: PaginationEngine, spy_fs: MagicMock, populated_dir: Path
    ) -> None:
        """The directory is read once for any number of page requests."""
        engine.get_page(str(populated_dir), 0)
        engine.get_page(str(populated_dir), 0)
        engine.get_page(str(populated_dir), 1)

        assert spy_fs.list_dir.call_count == 1

    def test_unreadable_directory_yields_error_page(
        self, engine: PaginationEngine, spy_fs: MagicMock, tmp_path: Path
    ) -> None:
        """A missing directory gives an empty page with an error, not cached."""
        missing = str(tmp_path / "missing")

        page = engine.get_page(missing, 0)
        engine.get_page(missing, 0)

        assert page.failed
        assert page.total_count == 0
        assert page.items == ()
        assert spy_fs.list_dir.call_count == 2

    def test_empty_directory_is_not_an_error(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """An empty directory gives an empty page without an error."""
        page = engine.get_page(str(tmp_path), 0)

        assert not page.failed
        assert page.total_count == 0

    def test_invalid_arguments_rejected(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """Negative page indexes and non-positive sizes raise ValueError."""
        with pytest.raises(ValueError, match="page_index"):
            engine.get_page(str(tmp_path), -1)
        with pytest.raises(ValueError, match="page_size"):
            engine.get_page(str(tmp_path), 0, -5)

    def test_explicit_zero_sizes_rejected(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """A page or batch size of 0 is an error, not a request for the default."""
        with pytest.raises(ValueError, match="page_size must be positive, got 0"):
            engine.get_page(str(tmp_path), 0, 0)
        with pytest.raises(ValueError, match="page_size must be positive, got 0"):
            engine.lazy_sequence(str(tmp_path), page_size=0)
        with pytest.raises(ValueError, match="page_size must be positive, got 0"):
            engine.preload(str(tmp_path), page_size=0)
        with pytest.raises(ValueError, match="batch_size must be positive, got 0"):
            engine.process_batch([1, 2], lambda item, index: item, batch_size=0)

    def test_sort_order_change_reorders_pages(
        self, engine: PaginationEngine, populated_dir: Path
    ) -> None:
        """Changing the sort order drops cached pages."""
        engine.get_page(str(populated_dir), 0)

        engine.set_sort_order(SortOrder.NAME_DESC)
        page = engine.get_page(str(populated_dir), 0)

        assert page.items[0] == "file_24.txt"


class TestLazySequence:
    """Tests for lazy_sequence."""

    def test_yields_batches_in_order(self, engine: PaginationEngine, populated_dir: Path) -> None:
        """The sequence yields one batch per page."""
        batches = list(engine.lazy_sequence(str(populated_dir)))

        assert [len(b) for b in batches] == [10, 10, 5]
        assert batches[1][0] == "file_10.txt"

    def test_sequence_is_restartable(self, engine: PaginationEngine, populated_dir: Path) -> None:
        """Iterating twice yields the same batches."""
        sequence = engine.lazy_sequence(str(populated_dir), page_size=7)

        assert list(sequence) == list(sequence)

    def test_empty_directory_yields_nothing(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """An empty directory produces no batches."""
        assert list(engine.lazy_sequence(str(tmp_path))) == []

    def test_pages_include_metadata(self, engine: PaginationEngine, populated_dir: Path) -> None:
        """pages() yields DirectoryPage objects ending with has_more False."""
        pages = list(engine.lazy_sequence(str(populated_dir)).pages())

        assert [p.page_index for p in pages] == [0, 1, 2]
        assert pages[-1].has_more is False


class TestDirectoryStats:
    """Tests for directory_stats, count_items and preload."""

    def test_large_directory_flags(self, populated_dir: Path) -> None:
        """Thresholds derive from max_items."""
        engine = PaginationEngine(LocalFilesystem(), DirectoryCache(), page_size=10, max_items=20)

        stats = engine.directory_stats(str(populated_dir))

        assert stats.item_count == 25
        assert stats.is_large is True
        assert stats.recommend_pagination is True
        assert stats.estimated_load_ms == 100

    def test_small_directory_flags(self, populated_dir: Path) -> None:
        """A directory under half of max_items needs no pagination."""
        engine = PaginationEngine(LocalFilesystem(), DirectoryCache(), max_items=1000)

        stats = engine.directory_stats(str(populated_dir))

        assert stats.is_large is False
        assert stats.recommend_pagination is False

    def test_unreadable_directory_reports_zero(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """Stats for a missing directory are all zero."""
        stats = engine.directory_stats(str(tmp_path / "missing"))

        assert stats.item_count == 0
        assert stats.estimated_load_ms == 0

    def test_count_items_recursive(self, engine: PaginationEngine, tmp_path: Path) -> None:
        """Recursive counts respect max_depth."""
        (tmp_path / "a" / "b" / "c").mkdir(parents=True)
        (tmp_path / "top.txt").write_text("x")
        (tmp_path / "a" / "one.txt").write_text("x")
        (tmp_path / "a" / "b" / "two.txt").write_text("x")
        (tmp_path / "a" / "b" / "c" / "three.txt").write_text("x")

        flat = engine.count_items(str(tmp_path))
        shallow = engine.count_items(str(tmp_path), recursive=True, max_depth=1)
        deep = engine.count_items(str(tmp_path), recursive=True)

        assert (flat.files, flat.directories) == (1, 1)
        assert (shallow.files, shallow.directories) == (2, 2)
        assert (deep.files, deep.directories) == (4, 3)
        assert deep.total == 7

    def test_preload_large_directory(self, populated_dir: Path) -> None:
        """Large directories preload up to max_pages pages."""
        cache = DirectoryCache()
        engine = PaginationEngine(LocalFilesystem(), cache, page_size=10, max_items=20)

        loaded = engine.preload(str(populated_dir), max_pages=2)

        assert loaded == 2
        assert engine.cache_stats().size == 3  # listing plus two pages

    def test_preload_small_directory_loads_one_page(self, populated_dir: Path) -> None:
        """Small directories are preloaded as a single page."""
        engine = PaginationEngine(LocalFilesystem(), DirectoryCache(), max_items=1000)

        assert engine.preload(str(populated_dir)) == 1


class TestSortEntries:
    """Tests for sort_entries."""

    def test_size_desc(self, make_entry) -> None:
        """SIZE_DESC puts the largest entry first."""
        entries = [make_entry("a", size=1), make_entry("b", size=3), make_entry("c", size=2)]

        ordered = sort_entries(entries, SortOrder.SIZE_DESC)

        assert [e.name for e in ordered] == ["b", "c", "a"]


class TestProcessBatch:
    """Tests for process_batch."""

    def test_results_keep_input_order(self, engine: PaginationEngine) -> None:
        """Results line up with inputs even when completion order differs."""

        def worker(item: int, index: int) -> tuple[int, int]:
            time.sleep(0.01 * (5 - item))
            return item * 2, index

        results = engine.process_batch([0, 1, 2, 3, 4], worker, batch_size=3)

        assert results == [(0, 0), (2, 1), (4, 2), (6, 3), (8, 4)]

    def test_concurrency_bounded_by_batch_size(self, engine: PaginationEngine) -> None:
        """No more than batch_size workers run at once."""
        lock = threading.Lock()
        running = 0
        peak = 0

        def worker(item: int, index: int) -> int:
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            time.sleep(0.02)
            with lock:
                running -= 1
            return item

        engine.process_batch(list(range(10)), worker, batch_size=3)

        assert peak <= 3

    def test_progress_and_delay_between_batches(self, engine: PaginationEngine) -> None:
        """Progress is reported per batch and the delay skips the last batch."""
        progress: list[tuple[int, int]] = []

        with patch("dirscope.pagination.engine.time.sleep") as mock_sleep:
            engine.process_batch(
                [1, 2, 3, 4, 5],
                lambda item, index: item,
                batch_size=2,
                inter_batch_delay=0.5,
                progress=lambda done, total: progress.append((done, total)),
            )

        assert progress == [(2, 5), (4, 5), (5, 5)]
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)

    def test_empty_input(self, engine: PaginationEngine) -> None:
        """No items means no work and no results."""
        assert engine.process_batch([], lambda item, index: item) == []

    def test_worker_error_propagates(self, engine: PaginationEngine) -> None:
        """A failing worker stops processing with its exception."""

        def worker(item: int, index: int) -> int:
            if item == 3:
                raise RuntimeError("boom")
            return item

        with pytest.raises(RuntimeError, match="boom"):
            engine.process_batch([1, 2, 3, 4], worker, batch_size=2)
