"""Directory entry and page models.

This module defines the immutable data structures returned by the
directory reader: per-entry metadata and fixed-size listing pages.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SortOrder(str, Enum):
    """Ordering applied to directory listings before pagination.

    Attributes:
        NAME_ASC: Alphabetical by name.
        NAME_DESC: Reverse alphabetical by name.
        SIZE_ASC: Smallest first.
        SIZE_DESC: Largest first.
        MODIFIED_ASC: Oldest modification first.
        MODIFIED_DESC: Newest modification first.
    """

    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    SIZE_ASC = "size-asc"
    SIZE_DESC = "size-desc"
    MODIFIED_ASC = "modified-asc"
    MODIFIED_DESC = "modified-desc"


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Metadata for a single directory entry.

    Attributes:
        path: Absolute path of the entry.
        name: Final path component.
        is_directory: True for directories (symlinks to directories included).
        size: Size in bytes (0 for directories).
        modified: Last modification time (timezone-aware, UTC).
        hidden: True for dot-files.
    """

    path: str
    name: str
    is_directory: bool
    size: int
    modified: datetime
    hidden: bool = False

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.name:
            msg = "Entry name cannot be empty"
            raise ValueError(msg)

    @property
    def is_file(self) -> bool:
        """Check if this entry is not a directory."""
        return not self.is_directory


@dataclass(frozen=True, slots=True)
class DirectoryPage:
    """One fixed-size page of a directory listing.

    Attributes:
        items: Entry names on this page, in listing order.
        has_more: True if entries exist after this page.
        total_count: Number of entries in the whole directory.
        page_index: Zero-based index of this page.
        error: Set when the directory could not be read. An unreadable
            directory and an empty one both have total_count == 0; only
            this field tells them apart.
    """

    items: tuple[str, ...]
    has_more: bool
    total_count: int
    page_index: int
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the directory could not be read."""
        return self.error is not None

    @classmethod
    def from_names(cls, names: list[str], page_index: int, page_size: int) -> "DirectoryPage":
        """Slice a full, ordered name list into one page.

        Args:
            names: All entry names of the directory, already ordered.
            page_index: Zero-based page index.
            page_size: Number of entries per page.

        Returns:
            DirectoryPage for the requested slice.
        """
        total_count = len(names)
        start_index = page_index * page_size
        end_index = min(start_index + page_size, total_count)
        items = tuple(names[start_index:end_index])
        return cls(
            items=items,
            has_more=start_index + len(items) < total_count,
            total_count=total_count,
            page_index=page_index,
        )

    @classmethod
    def unreadable(cls, page_index: int, error: str) -> "DirectoryPage":
        """Build the empty page returned for an unreadable directory.

        Args:
            page_index: Zero-based page index that was requested.
            error: Description of the read failure.

        Returns:
            Empty DirectoryPage carrying the error.
        """
        return cls(items=(), has_more=False, total_count=0, page_index=page_index, error=error)


@dataclass(frozen=True, slots=True)
class DirectoryStats:
    """Size summary used to decide whether to paginate a directory.

    Attributes:
        item_count: Number of direct entries.
        is_large: More entries than the configured max_items.
        recommend_pagination: More than half of max_items entries.
        estimated_load_ms: Rough time to load the full listing.
    """

    item_count: int
    is_large: bool
    recommend_pagination: bool
    estimated_load_ms: int


@dataclass(frozen=True, slots=True)
class ItemCount:
    """Counts of files and directories under a path."""

    files: int
    directories: int

    @property
    def total(self) -> int:
        """Total number of counted entries."""
        return self.files + self.directories
