"""Filesystem primitives and journaled file operations.

This module provides the primitive interface the engine consumes, a
local-disk implementation, and the service that performs mutations
and records them in the operation journal.
"""

from dirscope.fs.base import Filesystem
from dirscope.fs.local import LocalFilesystem
from dirscope.fs.operations import FileOperationService, unique_destination

__all__ = [
    "FileOperationService",
    "Filesystem",
    "LocalFilesystem",
    "unique_destination",
]
