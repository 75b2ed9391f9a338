"""Journaled file operation models.

This module defines the operation sum type recorded by the journal.
Each variant carries the minimal state needed to reverse it; the
journal matches on the concrete class to undo it.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar


class OperationType(str, Enum):
    """Kind of journaled operation."""

    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"
    RENAME = "rename"
    CREATE = "create"
    CREATE_FOLDER = "create_folder"


class OperationStatus(str, Enum):
    """Lifecycle state of a journaled operation.

    Attributes:
        PENDING: Recorded, not started.
        IN_PROGRESS: The caller is performing the I/O.
        COMPLETED: The I/O finished; the operation may be undone.
        FAILED: The I/O failed. Terminal.
        UNDONE: The operation was reversed. Terminal.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    UNDONE = "undone"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are allowed."""
        return self in (OperationStatus.FAILED, OperationStatus.UNDONE)


# Transitions callers may request through update_status. UNDONE is only
# reachable through undo.
ALLOWED_TRANSITIONS: dict[OperationStatus, frozenset[OperationStatus]] = {
    OperationStatus.PENDING: frozenset(
        {OperationStatus.IN_PROGRESS, OperationStatus.COMPLETED, OperationStatus.FAILED}
    ),
    OperationStatus.IN_PROGRESS: frozenset({OperationStatus.COMPLETED, OperationStatus.FAILED}),
    OperationStatus.COMPLETED: frozenset(),
    OperationStatus.FAILED: frozenset(),
    OperationStatus.UNDONE: frozenset(),
}


def generate_operation_id() -> str:
    """Generate a unique operation id.

    Returns:
        ``op_`` followed by 12 hex characters of a UUID4.
    """
    return f"op_{uuid.uuid4().hex[:12]}"


@dataclass(slots=True, kw_only=True)
class OperationBase:
    """Fields shared by every operation variant.

    Attributes:
        id: Unique operation id.
        timestamp: When the operation was recorded (UTC).
        status: Current lifecycle state.
        description: Human-readable summary.
        can_undo: Whether undo is allowed at all.
        error: Captured error message for failed operations.
    """

    type: ClassVar[OperationType]

    id: str = field(default_factory=generate_operation_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: OperationStatus = OperationStatus.PENDING
    description: str = ""
    can_undo: bool = True
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the common fields for display or JSON output.

        Returns:
            Dictionary with the shared operation fields.
        """
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "description": self.description,
            "can_undo": self.can_undo,
            "error": self.error,
        }


@dataclass(slots=True, kw_only=True)
class CopyOperation(OperationBase):
    """Copy of one or more paths into a target directory."""

    type: ClassVar[OperationType] = OperationType.COPY

    source_paths: tuple[str, ...]
    target_directory: str
    created_files: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class MoveOperation(OperationBase):
    """Move of one or more paths into a target directory.

    original_paths[i] is where moved_files[i] came from.
    """

    type: ClassVar[OperationType] = OperationType.MOVE

    source_paths: tuple[str, ...]
    target_directory: str
    original_paths: list[str] = field(default_factory=list)
    moved_files: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class DeleteOperation(OperationBase):
    """Deletion of one or more paths.

    Attributes:
        deleted_paths: Paths that were deleted.
        backup_location: ``<backup_root>/<id>`` when backups were taken.
        backup_copies: Backup copy of each deleted path, keyed by that path.
        file_contents: In-memory copies of small regular files.
    """

    type: ClassVar[OperationType] = OperationType.DELETE

    deleted_paths: tuple[str, ...]
    backup_location: str | None = None
    backup_copies: dict[str, str] = field(default_factory=dict)
    file_contents: dict[str, bytes] = field(default_factory=dict)


@dataclass(slots=True, kw_only=True)
class RenameOperation(OperationBase):
    """Rename of a single path."""

    type: ClassVar[OperationType] = OperationType.RENAME

    original_path: str
    new_path: str


@dataclass(slots=True, kw_only=True)
class CreateOperation(OperationBase):
    """Creation of a file."""

    type: ClassVar[OperationType] = OperationType.CREATE

    created_path: str
    initial_content: str | None = None


@dataclass(slots=True, kw_only=True)
class CreateFolderOperation(OperationBase):
    """Creation of a directory."""

    type: ClassVar[OperationType] = OperationType.CREATE_FOLDER

    created_path: str


Operation = (
    CopyOperation
    | MoveOperation
    | DeleteOperation
    | RenameOperation
    | CreateOperation
    | CreateFolderOperation
)


def describe_items(count: int) -> str:
    """Format an item count for operation descriptions."""
    return f"{count} item(s)"


def basename(path: str) -> str:
    """Final component of a path, tolerating trailing separators."""
    return Path(path).name or path
