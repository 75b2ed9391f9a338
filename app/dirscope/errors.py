"""Error taxonomy for the dirscope engine.

Journal and configuration errors are raised to the caller so a UI can
report them. Pattern errors are normally absorbed by the query engine
and only surface through ``QueryEngine.validate``.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of an engine failure.

    Attributes:
        NOT_FOUND: Operation id is unknown to the journal.
        ALREADY_UNDONE: Operation was undone before.
        CANNOT_UNDO: Operation failed, is not completed, or is not undoable.
        INVALID_TRANSITION: Status change not allowed by the lifecycle.
        INVALID_PATTERN: Query could not be compiled.
        IO_FAILURE: Filesystem error during a mutation or undo step.
        CONFIG: Configuration could not be loaded or saved.
    """

    NOT_FOUND = "not_found"
    ALREADY_UNDONE = "already_undone"
    CANNOT_UNDO = "cannot_undo"
    INVALID_TRANSITION = "invalid_transition"
    INVALID_PATTERN = "invalid_pattern"
    IO_FAILURE = "io_failure"
    CONFIG = "config"


class DirscopeError(Exception):
    """Base exception for all engine errors."""

    kind: ErrorKind = ErrorKind.IO_FAILURE


class JournalError(DirscopeError):
    """Base exception for operation journal errors."""


class OperationNotFoundError(JournalError):
    """Raised when an operation id is not in the journal."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Operation {operation_id} not found")
        self.operation_id = operation_id


class AlreadyUndoneError(JournalError):
    """Raised when undoing an operation a second time."""

    kind = ErrorKind.ALREADY_UNDONE

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Operation {operation_id} has already been undone")
        self.operation_id = operation_id


class CannotUndoError(JournalError):
    """Raised when an operation is not eligible for undo."""

    kind = ErrorKind.CANNOT_UNDO

    def __init__(self, operation_id: str, reason: str) -> None:
        super().__init__(f"Operation {operation_id} cannot be undone: {reason}")
        self.operation_id = operation_id
        self.reason = reason


class InvalidTransitionError(JournalError):
    """Raised when a status change violates the operation lifecycle."""

    kind = ErrorKind.INVALID_TRANSITION


class InvalidPatternError(DirscopeError):
    """Raised when a search query cannot be compiled."""

    kind = ErrorKind.INVALID_PATTERN

    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"Invalid pattern {query!r}: {reason}")
        self.query = query
        self.reason = reason


class IOFailureError(DirscopeError):
    """Wraps a filesystem error raised during a mutation or undo step.

    Attributes:
        path: Path the failing step operated on.
        cause: Underlying OSError, if any.
    """

    kind = ErrorKind.IO_FAILURE

    def __init__(self, path: str, message: str, cause: OSError | None = None) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
        self.cause = cause

    @classmethod
    def from_os_error(cls, path: str, error: OSError) -> "IOFailureError":
        """Build an IOFailureError from an OSError.

        Args:
            path: Path the failing step operated on.
            error: The original filesystem error.

        Returns:
            IOFailureError chained to the original error.
        """
        return cls(path, error.strerror or str(error), cause=error)


class ConfigError(DirscopeError):
    """Base exception for configuration errors."""

    kind = ErrorKind.CONFIG


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""
