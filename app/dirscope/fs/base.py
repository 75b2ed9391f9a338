"""Abstract base class for filesystem primitives.

The engine never touches the disk directly. Directory reads, stats and
mutations all go through a Filesystem implementation so hosts can plug
in remote or virtual filesystems and tests can inject failures.
"""

from abc import ABC, abstractmethod

from dirscope.models.entry import FileEntry


class Filesystem(ABC):
    """Primitive operations consumed by the engine.

    All methods raise OSError (or a subclass) on failure.

    Example:
        >>> fs = LocalFilesystem()
        >>> for entry in fs.list_dir("/tmp"):
        ...     print(entry.name, entry.is_directory)
    """

    @abstractmethod
    def list_dir(self, path: str) -> list[FileEntry]:
        """List the direct entries of a directory, in no particular order.

        Args:
            path: Directory to list.

        Returns:
            One FileEntry per direct child.
        """

    @abstractmethod
    def stat(self, path: str) -> FileEntry:
        """Read metadata for a single path.

        Args:
            path: Path to inspect.

        Returns:
            FileEntry describing the path.
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a path exists (dead symlinks count as existing)."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Check if a path is a directory."""

    @abstractmethod
    def copy(self, source: str, destination: str) -> None:
        """Copy a file or directory tree to an exact destination path.

        Args:
            source: Existing file or directory.
            destination: Full target path (not a parent directory).
        """

    @abstractmethod
    def move(self, source: str, destination: str) -> None:
        """Move or rename a path to an exact destination path.

        Args:
            source: Existing path.
            destination: Full target path.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a path, recursively for directories.

        Args:
            path: Path to delete.
        """

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read the full content of a file."""

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        """Write data to a file, replacing existing content."""

    @abstractmethod
    def make_dir(self, path: str, parents: bool = True) -> None:
        """Create a directory.

        Args:
            path: Directory to create.
            parents: Also create missing parents; tolerate an existing directory.
        """
