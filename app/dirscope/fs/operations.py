"""Journaled file mutations.

FileOperationService performs copies, moves, deletions, renames and
creations through a Filesystem. Every mutation is recorded in the
operation journal before its I/O runs, its status is tracked through
completion or failure, and the affected cache paths are invalidated.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from dirscope.errors import IOFailureError
from dirscope.models.operation import OperationStatus, basename

if TYPE_CHECKING:
    from dirscope.cache.directory_cache import DirectoryCache
    from dirscope.fs.base import Filesystem
    from dirscope.journal.journal import OperationJournal

logger = logging.getLogger(__name__)

_MAX_CONFLICT_SUFFIX = 10_000


def unique_destination(dest_dir: str, name: str, fs: Filesystem) -> str:
    """Pick a free path for ``name`` inside ``dest_dir``.

    Taken names get a numeric suffix before the extension:
    ``report.txt``, ``report (1).txt``, ``report (2).txt``, ...

    Args:
        dest_dir: Destination directory.
        name: Desired entry name.
        fs: Filesystem used to check for existing entries.

    Returns:
        Full path that does not exist yet.

    Raises:
        IOFailureError: If no free name is found.
    """
    candidate = os.path.join(dest_dir, name)
    if not fs.exists(candidate):
        return candidate

    stem, ext = os.path.splitext(name)
    for counter in range(1, _MAX_CONFLICT_SUFFIX):
        candidate = os.path.join(dest_dir, f"{stem} ({counter}){ext}")
        if not fs.exists(candidate):
            return candidate

    raise IOFailureError(os.path.join(dest_dir, name), "No free name available")


def _validate_paths(paths: Iterable[str]) -> list[str]:
    checked = list(paths)
    if not checked:
        msg = "At least one path is required"
        raise ValueError(msg)
    if any(not path for path in checked):
        msg = "Paths must not be empty"
        raise ValueError(msg)
    return checked


class FileOperationService:
    """Performs file mutations and records them for undo.

    Args:
        filesystem: Filesystem performing the I/O.
        journal: Journal that records every mutation.
        cache: Optional DirectoryCache invalidated after each mutation.

    Example:
        >>> service = FileOperationService(fs, journal, cache)
        >>> op_id = service.delete(["/tmp/notes.txt"])
        >>> journal.undo(op_id)
    """

    def __init__(
        self,
        filesystem: Filesystem,
        journal: OperationJournal,
        cache: DirectoryCache | None = None,
    ) -> None:
        self._fs = filesystem
        self._journal = journal
        self._cache = cache

    def _run(self, operation_id: str, path: str, action: Callable[[], None]) -> None:
        """Run the I/O of a recorded operation and settle its status."""
        self._journal.update_status(operation_id, OperationStatus.IN_PROGRESS)
        try:
            action()
        except OSError as e:
            failed_path = e.filename if isinstance(e.filename, str) else path
            error = IOFailureError.from_os_error(failed_path, e)
            self._journal.update_status(operation_id, OperationStatus.FAILED, str(error))
            logger.warning("Operation %s failed: %s", operation_id, error)
            raise error from e
        self._journal.update_status(operation_id, OperationStatus.COMPLETED)

    def _invalidate(self, *paths: str) -> None:
        if self._cache is None:
            return
        for path in paths:
            self._cache.invalidate_path(path)

    def _require_directory(self, path: str) -> None:
        if not self._fs.is_dir(path):
            msg = f"Destination is not a directory: {path}"
            raise NotADirectoryError(msg)

    def copy(self, sources: Iterable[str], destination: str) -> str:
        """Copy paths into a directory.

        Args:
            sources: Files or directories to copy.
            destination: Existing target directory.

        Returns:
            The journal operation id.

        Raises:
            ValueError: If no source is given.
            NotADirectoryError: If the destination is not a directory.
            IOFailureError: If a copy fails.
        """
        source_paths = _validate_paths(sources)
        self._require_directory(destination)
        operation_id = self._journal.record_copy(source_paths, destination)
        created: list[str] = []

        def action() -> None:
            try:
                for source in source_paths:
                    target = unique_destination(destination, basename(source), self._fs)
                    self._fs.copy(source, target)
                    created.append(target)
            finally:
                self._journal.mark_files_created(operation_id, created)

        try:
            self._run(operation_id, destination, action)
        finally:
            self._invalidate(destination)
        return operation_id

    def move(self, sources: Iterable[str], destination: str) -> str:
        """Move paths into a directory.

        Args:
            sources: Files or directories to move.
            destination: Existing target directory.

        Returns:
            The journal operation id.

        Raises:
            ValueError: If no source is given.
            NotADirectoryError: If the destination is not a directory.
            IOFailureError: If a move fails.
        """
        source_paths = _validate_paths(sources)
        self._require_directory(destination)
        operation_id = self._journal.record_move(source_paths, destination)
        moves: list[tuple[str, str]] = []

        def action() -> None:
            try:
                for source in source_paths:
                    target = unique_destination(destination, basename(source), self._fs)
                    self._fs.move(source, target)
                    moves.append((source, target))
            finally:
                self._journal.mark_files_moved(operation_id, moves)

        try:
            self._run(operation_id, destination, action)
        finally:
            self._invalidate(destination, *source_paths)
        return operation_id

    def delete(self, paths: Iterable[str]) -> str:
        """Delete paths, backing them up through the journal first.

        Args:
            paths: Files or directories to delete.

        Returns:
            The journal operation id.

        Raises:
            ValueError: If no path is given.
            IOFailureError: If a deletion fails.
        """
        targets = _validate_paths(paths)
        operation_id = self._journal.record_delete(targets)

        def action() -> None:
            for path in targets:
                self._fs.delete(path)

        try:
            self._run(operation_id, targets[0], action)
        finally:
            self._invalidate(*targets)
        return operation_id

    def rename(self, old_path: str, new_name: str) -> str:
        """Rename a path in place.

        Args:
            old_path: Existing path.
            new_name: New name, or a full path in the same directory.

        Returns:
            The journal operation id.

        Raises:
            ValueError: If the new name is empty or contains a separator
                pointing elsewhere.
            FileExistsError: If the new path is already taken.
            IOFailureError: If the rename fails.
        """
        if not new_name:
            msg = "New name must not be empty"
            raise ValueError(msg)
        parent = os.path.dirname(old_path)
        new_path = new_name if os.path.isabs(new_name) else os.path.join(parent, new_name)
        if os.path.dirname(new_path) != parent:
            msg = f"Rename must stay in {parent}: {new_name}"
            raise ValueError(msg)
        if self._fs.exists(new_path):
            msg = f"Path already exists: {new_path}"
            raise FileExistsError(msg)

        operation_id = self._journal.record_rename(old_path, new_path)
        try:
            self._run(operation_id, old_path, lambda: self._fs.move(old_path, new_path))
        finally:
            self._invalidate(old_path, new_path)
        return operation_id

    def create_file(self, path: str, content: str = "") -> str:
        """Create a file with optional text content.

        Args:
            path: File to create.
            content: Initial UTF-8 text content.

        Returns:
            The journal operation id.

        Raises:
            FileExistsError: If the path is already taken.
            IOFailureError: If writing fails.
        """
        if self._fs.exists(path):
            msg = f"Path already exists: {path}"
            raise FileExistsError(msg)

        operation_id = self._journal.record_create(path, content or None)
        try:
            self._run(operation_id, path, lambda: self._fs.write_bytes(path, content.encode()))
        finally:
            self._invalidate(path)
        return operation_id

    def create_folder(self, path: str) -> str:
        """Create a directory, including missing parents.

        Args:
            path: Directory to create.

        Returns:
            The journal operation id.

        Raises:
            FileExistsError: If the path is already taken.
            IOFailureError: If creation fails.
        """
        if self._fs.exists(path):
            msg = f"Path already exists: {path}"
            raise FileExistsError(msg)

        operation_id = self._journal.record_create_folder(path)
        try:
            self._run(operation_id, path, lambda: self._fs.make_dir(path))
        finally:
            self._invalidate(path)
        return operation_id
