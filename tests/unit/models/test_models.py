"""Unit tests for entry, page and operation models."""

import re
from datetime import UTC, datetime

import pytest
from dirscope.models.entry import DirectoryPage, FileEntry, ItemCount
from dirscope.models.operation import (
    ALLOWED_TRANSITIONS,
    DeleteOperation,
    OperationStatus,
    OperationType,
    RenameOperation,
    basename,
    describe_items,
    generate_operation_id,
)


class TestFileEntry:
    """Tests for FileEntry."""

    def test_empty_name_rejected(self) -> None:
        """An entry needs a name."""
        with pytest.raises(ValueError, match="cannot be empty"):
            FileEntry(path="/", name="", is_directory=True, size=0, modified=datetime.now(UTC))

    def test_is_file(self, make_entry) -> None:
        """is_file is the inverse of is_directory."""
        assert make_entry("a.txt").is_file
        assert not make_entry("dir", is_directory=True).is_file


class TestDirectoryPage:
    """Tests for DirectoryPage construction."""

    def test_from_names_slices(self) -> None:
        """Pages cover consecutive slices of the name list."""
        names = [f"n{i}" for i in range(5)]

        first = DirectoryPage.from_names(names, 0, 2)
        last = DirectoryPage.from_names(names, 2, 2)

        assert first.items == ("n0", "n1")
        assert first.has_more is True
        assert last.items == ("n4",)
        assert last.has_more is False
        assert last.total_count == 5
        assert not last.failed

    def test_exact_multiple_has_no_more_on_last_page(self) -> None:
        """The last full page reports no more entries."""
        page = DirectoryPage.from_names(["a", "b", "c", "d"], 1, 2)

        assert page.items == ("c", "d")
        assert page.has_more is False

    def test_unreadable(self) -> None:
        """Unreadable pages are empty and carry the error."""
        page = DirectoryPage.unreadable(3, "Permission denied")

        assert page.failed
        assert page.page_index == 3
        assert page.total_count == 0

    def test_item_count_total(self) -> None:
        """ItemCount.total adds files and directories."""
        assert ItemCount(files=3, directories=2).total == 5


class TestOperations:
    """Tests for operation models and helpers."""

    def test_generated_ids(self) -> None:
        """Ids are op_ plus 12 hex characters and unique."""
        ids = {generate_operation_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(re.fullmatch(r"op_[0-9a-f]{12}", op_id) for op_id in ids)

    def test_variant_types_and_defaults(self) -> None:
        """Each variant knows its type and starts pending."""
        operation = RenameOperation(original_path="/a/x", new_path="/a/y")

        assert operation.type is OperationType.RENAME
        assert operation.status is OperationStatus.PENDING
        assert operation.can_undo is True
        assert operation.timestamp.tzinfo is not None

    def test_to_dict(self) -> None:
        """to_dict serializes the shared fields."""
        operation = DeleteOperation(id="op_123456789abc", deleted_paths=("/a",), description="d")

        data = operation.to_dict()

        assert data["id"] == "op_123456789abc"
        assert data["type"] == "delete"
        assert data["status"] == "pending"
        assert data["error"] is None

    def test_terminal_statuses_allow_nothing(self) -> None:
        """Failed and undone operations cannot change status."""
        assert OperationStatus.FAILED.is_terminal
        assert OperationStatus.UNDONE.is_terminal
        assert not OperationStatus.COMPLETED.is_terminal
        assert ALLOWED_TRANSITIONS[OperationStatus.FAILED] == frozenset()
        assert OperationStatus.UNDONE not in ALLOWED_TRANSITIONS[OperationStatus.COMPLETED]

    def test_helpers(self) -> None:
        """Description helpers format counts and names."""
        assert describe_items(3) == "3 item(s)"
        assert basename("/a/b/") == "b"
        assert basename("/") == "/"
