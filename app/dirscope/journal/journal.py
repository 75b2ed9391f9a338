"""Bounded history of file operations with undo support.

Operations are recorded before their I/O runs, updated through a small
status lifecycle, and reversed on request. Deletions are backed up to
``<backup_root>/<operation_id>/`` so they can be restored. The history
is bounded by size and by age; evicting a deletion removes its backup.
"""

import logging
import os
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import assert_never

from dirscope.core.config import ONE_MIB, SEVEN_DAYS
from dirscope.errors import (
    AlreadyUndoneError,
    CannotUndoError,
    InvalidTransitionError,
    IOFailureError,
    OperationNotFoundError,
)
from dirscope.fs.base import Filesystem
from dirscope.journal.backup import (
    DeletionBackup,
    create_backup,
    remove_backup,
    restore_path,
)
from dirscope.models.operation import (
    ALLOWED_TRANSITIONS,
    CopyOperation,
    CreateFolderOperation,
    CreateOperation,
    DeleteOperation,
    MoveOperation,
    Operation,
    OperationStatus,
    RenameOperation,
    basename,
    describe_items,
    generate_operation_id,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 100


@contextmanager
def _io_step(path: str) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        raise IOFailureError.from_os_error(path, e) from e


class OperationJournal:
    """Records file operations and reverses them on request.

    All bookkeeping is guarded by a reentrant lock. Undo I/O runs
    outside the lock; an operation being undone keeps its backup until
    the undo finishes, even if it is evicted in the meantime.

    Args:
        filesystem: Filesystem used for backups and undo steps.
        backup_root: Directory holding per-operation backup directories.
        max_history_size: Maximum number of remembered operations.
        enable_backups: Back up paths when recording deletions.
        cleanup_age_seconds: Age after which operations are expired.
        snapshot_threshold_bytes: Files smaller than this are also kept in memory.
        clock: Source of the current UTC time, injectable for tests.
    """

    def __init__(
        self,
        filesystem: Filesystem,
        backup_root: str,
        *,
        max_history_size: int = DEFAULT_MAX_HISTORY,
        enable_backups: bool = True,
        cleanup_age_seconds: float = SEVEN_DAYS,
        snapshot_threshold_bytes: int = ONE_MIB,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._fs = filesystem
        self._backup_root = backup_root
        self._max_history_size = max_history_size
        self._enable_backups = enable_backups
        self._cleanup_age = timedelta(seconds=cleanup_age_seconds)
        self._snapshot_threshold = snapshot_threshold_bytes
        self._clock = clock
        self._lock = threading.RLock()
        # Insertion-ordered; oldest first
        self._operations: dict[str, Operation] = {}
        self._undoing: set[str] = set()
        # Backups of operations evicted while their undo was running
        self._deferred_cleanup: dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)

    def __contains__(self, operation_id: object) -> bool:
        with self._lock:
            return operation_id in self._operations

    @property
    def backup_root(self) -> str:
        """Directory holding per-operation backups."""
        return self._backup_root

    # =========================================================================
    # Recording
    # =========================================================================

    def record_copy(self, source_paths: Iterable[str], target_directory: str) -> str:
        """Record a copy of paths into a directory.

        Args:
            source_paths: Paths being copied.
            target_directory: Destination directory.

        Returns:
            The new operation id.
        """
        sources = tuple(source_paths)
        return self._add(
            CopyOperation(
                timestamp=self._clock(),
                source_paths=sources,
                target_directory=target_directory,
                description=(
                    f"Copy {describe_items(len(sources))} to {basename(target_directory)}"
                ),
            )
        )

    def record_move(self, source_paths: Iterable[str], target_directory: str) -> str:
        """Record a move of paths into a directory.

        Args:
            source_paths: Paths being moved.
            target_directory: Destination directory.

        Returns:
            The new operation id.
        """
        sources = tuple(source_paths)
        return self._add(
            MoveOperation(
                timestamp=self._clock(),
                source_paths=sources,
                target_directory=target_directory,
                original_paths=list(sources),
                description=(
                    f"Move {describe_items(len(sources))} to {basename(target_directory)}"
                ),
            )
        )

    def record_delete(self, paths: Iterable[str]) -> str:
        """Record a deletion, backing the paths up first.

        Must be called before the paths are deleted. Backup failures are
        logged and do not prevent recording. With backups disabled the
        deletion is recorded as not undoable.

        Args:
            paths: Paths about to be deleted.

        Returns:
            The new operation id.
        """
        deleted = tuple(paths)
        operation_id = generate_operation_id()
        backup = DeletionBackup()

        if self._enable_backups:
            backup = create_backup(
                self._fs, self._backup_root, operation_id, deleted, self._snapshot_threshold
            )

        return self._add(
            DeleteOperation(
                id=operation_id,
                timestamp=self._clock(),
                deleted_paths=deleted,
                backup_location=backup.location,
                backup_copies=backup.copies,
                file_contents=backup.contents,
                description=f"Delete {describe_items(len(deleted))}",
                can_undo=self._enable_backups,
            )
        )

    def record_rename(self, original_path: str, new_path: str) -> str:
        """Record a rename.

        Returns:
            The new operation id.
        """
        return self._add(
            RenameOperation(
                timestamp=self._clock(),
                original_path=original_path,
                new_path=new_path,
                description=f"Rename {basename(original_path)} to {basename(new_path)}",
            )
        )

    def record_create(self, created_path: str, initial_content: str | None = None) -> str:
        """Record the creation of a file.

        Returns:
            The new operation id.
        """
        return self._add(
            CreateOperation(
                timestamp=self._clock(),
                created_path=created_path,
                initial_content=initial_content,
                description=f"Create {basename(created_path)}",
            )
        )

    def record_create_folder(self, created_path: str) -> str:
        """Record the creation of a directory.

        Returns:
            The new operation id.
        """
        return self._add(
            CreateFolderOperation(
                timestamp=self._clock(),
                created_path=created_path,
                description=f"Create folder {basename(created_path)}",
            )
        )

    def _add(self, operation: Operation) -> str:
        with self._lock:
            self._operations[operation.id] = operation
            while len(self._operations) > self._max_history_size:
                oldest = next(iter(self._operations))
                self._evict_locked(oldest)
        logger.debug("Recorded %s operation %s", operation.type.value, operation.id)
        return operation.id

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _require(self, operation_id: str) -> Operation:
        operation = self._operations.get(operation_id)
        if operation is None:
            raise OperationNotFoundError(operation_id)
        return operation

    def update_status(
        self,
        operation_id: str,
        status: OperationStatus,
        error: str | None = None,
    ) -> None:
        """Move an operation to a new status.

        Allowed transitions: pending to in_progress, completed or
        failed; in_progress to completed or failed. A failed operation,
        or one given an error message, can no longer be undone.

        Args:
            operation_id: Operation to update.
            status: New status.
            error: Optional error message to record.

        Raises:
            OperationNotFoundError: If the id is unknown.
            InvalidTransitionError: If the transition is not allowed.
        """
        with self._lock:
            operation = self._require(operation_id)
            if status not in ALLOWED_TRANSITIONS[operation.status]:
                msg = (
                    f"Operation {operation_id} cannot change from "
                    f"{operation.status.value} to {status.value}"
                )
                raise InvalidTransitionError(msg)
            operation.status = status
            if error is not None:
                operation.error = error
            if error is not None or status is OperationStatus.FAILED:
                operation.can_undo = False
        logger.debug("Operation %s is now %s", operation_id, status.value)

    def mark_files_created(self, operation_id: str, paths: Iterable[str]) -> None:
        """Remember the files a copy produced so undo can remove them.

        Args:
            operation_id: Copy operation id.
            paths: Created destination paths.

        Raises:
            OperationNotFoundError: If the id is unknown.
            TypeError: If the operation is not a copy.
        """
        with self._lock:
            operation = self._require(operation_id)
            if not isinstance(operation, CopyOperation):
                msg = f"Operation {operation_id} is a {operation.type.value}, not a copy"
                raise TypeError(msg)
            operation.created_files.extend(paths)

    def mark_files_moved(self, operation_id: str, moves: Iterable[tuple[str, str]]) -> None:
        """Remember where a move put each file so undo can move it back.

        Args:
            operation_id: Move operation id.
            moves: ``(original_path, moved_path)`` pairs.

        Raises:
            OperationNotFoundError: If the id is unknown.
            TypeError: If the operation is not a move.
        """
        with self._lock:
            operation = self._require(operation_id)
            if not isinstance(operation, MoveOperation):
                msg = f"Operation {operation_id} is a {operation.type.value}, not a move"
                raise TypeError(msg)
            pairs = list(moves)
            operation.original_paths = [original for original, _ in pairs]
            operation.moved_files = [moved for _, moved in pairs]

    # =========================================================================
    # Undo
    # =========================================================================

    def undo(self, operation_id: str) -> None:
        """Reverse a completed operation.

        On an I/O failure the steps already done are kept and the
        operation stays completed, so the undo may be retried.

        Args:
            operation_id: Operation to reverse.

        Raises:
            OperationNotFoundError: If the id is unknown.
            AlreadyUndoneError: If the operation was already undone.
            CannotUndoError: If the operation is not undoable, not
                completed, or already being undone.
            IOFailureError: If a filesystem step fails.
        """
        with self._lock:
            operation = self._require(operation_id)
            if operation.status is OperationStatus.UNDONE:
                raise AlreadyUndoneError(operation_id)
            if not operation.can_undo:
                raise CannotUndoError(operation_id, "operation is not undoable")
            if operation.status is not OperationStatus.COMPLETED:
                raise CannotUndoError(
                    operation_id, f"operation is {operation.status.value}, not completed"
                )
            if operation_id in self._undoing:
                raise CannotUndoError(operation_id, "undo already in progress")
            self._undoing.add(operation_id)

        try:
            self._reverse(operation)
            with self._lock:
                operation.status = OperationStatus.UNDONE
            logger.info("Undid %s", operation.description or operation_id)
        finally:
            with self._lock:
                self._undoing.discard(operation_id)
                deferred = self._deferred_cleanup.pop(operation_id, None)
            if deferred is not None:
                remove_backup(self._fs, deferred)

    def _reverse(self, operation: Operation) -> None:
        fs = self._fs
        match operation:
            case CopyOperation(created_files=created_files):
                for path in reversed(created_files):
                    with _io_step(path):
                        if fs.exists(path):
                            fs.delete(path)

            case MoveOperation(original_paths=originals, moved_files=moved_files):
                for original, moved in zip(originals, moved_files, strict=False):
                    with _io_step(moved):
                        if not fs.exists(moved):
                            logger.warning("Cannot move back %s: it no longer exists", moved)
                            continue
                        parent = os.path.dirname(original)
                        if parent:
                            fs.make_dir(parent)
                        fs.move(moved, original)

            case DeleteOperation(
                deleted_paths=deleted_paths,
                backup_copies=backup_copies,
                file_contents=file_contents,
            ):
                missing: list[str] = []
                for path in deleted_paths:
                    with _io_step(path):
                        if not restore_path(fs, path, backup_copies.get(path), file_contents):
                            missing.append(path)
                if missing:
                    raise IOFailureError(", ".join(missing), "No backup available")

            case RenameOperation(original_path=original_path, new_path=new_path):
                with _io_step(new_path):
                    if fs.exists(new_path):
                        fs.move(new_path, original_path)
                    else:
                        logger.warning("Cannot rename back %s: it no longer exists", new_path)

            case CreateOperation(created_path=path) | CreateFolderOperation(created_path=path):
                with _io_step(path):
                    if fs.exists(path):
                        fs.delete(path)

            case _:
                assert_never(operation)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, operation_id: str) -> Operation | None:
        """Look up an operation by id."""
        with self._lock:
            return self._operations.get(operation_id)

    def history(self, limit: int | None = None) -> list[Operation]:
        """Return operations, most recent first.

        Args:
            limit: Maximum number of operations to return.
        """
        with self._lock:
            operations = list(reversed(self._operations.values()))
        return operations if limit is None else operations[:limit]

    def undoable(self, limit: int | None = None) -> list[Operation]:
        """Return completed, undoable operations, most recent first.

        Args:
            limit: Maximum number of operations to return.
        """
        with self._lock:
            operations = [
                op
                for op in reversed(self._operations.values())
                if op.can_undo and op.status is OperationStatus.COMPLETED
            ]
        return operations if limit is None else operations[:limit]

    # =========================================================================
    # Eviction
    # =========================================================================

    def _evict_locked(self, operation_id: str) -> None:
        operation = self._operations.pop(operation_id)
        logger.debug("Evicted operation %s", operation_id)
        if not isinstance(operation, DeleteOperation) or operation.backup_location is None:
            return
        if operation_id in self._undoing:
            self._deferred_cleanup[operation_id] = operation.backup_location
            return
        remove_backup(self._fs, operation.backup_location)

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Drop operations older than the cleanup age, with their backups.

        Args:
            now: Reference time. Defaults to the journal clock.

        Returns:
            Number of operations removed.
        """
        cutoff = (now or self._clock()) - self._cleanup_age
        with self._lock:
            expired = [op_id for op_id, op in self._operations.items() if op.timestamp < cutoff]
            for op_id in expired:
                self._evict_locked(op_id)
        if expired:
            logger.info("Cleaned up %d old operations", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Forget every operation.

        Backups stay on disk; they are reclaimed by age from the backup root.
        """
        with self._lock:
            self._operations.clear()
        logger.info("Cleared operation history")

    def dispose(self) -> None:
        """Run a final cleanup of expired operations."""
        self.cleanup_expired()
