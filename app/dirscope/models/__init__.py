"""Data models for dirscope.

This module exports the core data structures used throughout the engine.
"""

from dirscope.models.entry import (
    DirectoryPage,
    DirectoryStats,
    FileEntry,
    ItemCount,
    SortOrder,
)
from dirscope.models.operation import (
    CopyOperation,
    CreateFolderOperation,
    CreateOperation,
    DeleteOperation,
    MoveOperation,
    Operation,
    OperationStatus,
    OperationType,
    RenameOperation,
)
from dirscope.models.search import (
    MatchField,
    PatternType,
    SearchMatch,
    SearchOptions,
    SearchResult,
)

__all__ = [
    "CopyOperation",
    "CreateFolderOperation",
    "CreateOperation",
    "DeleteOperation",
    "DirectoryPage",
    "DirectoryStats",
    "FileEntry",
    "ItemCount",
    "MatchField",
    "MoveOperation",
    "Operation",
    "OperationStatus",
    "OperationType",
    "PatternType",
    "RenameOperation",
    "SearchMatch",
    "SearchOptions",
    "SearchResult",
    "SortOrder",
]
