"""Local disk implementation of the filesystem primitives."""

import logging
import os
import shutil
from datetime import UTC, datetime
from pathlib import Path

from dirscope.fs.base import Filesystem
from dirscope.models.entry import FileEntry

logger = logging.getLogger(__name__)


def _entry_from_stat(path: str, name: str, st: os.stat_result, is_directory: bool) -> FileEntry:
    return FileEntry(
        path=path,
        name=name,
        is_directory=is_directory,
        size=0 if is_directory else st.st_size,
        modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
        hidden=name.startswith("."),
    )


class LocalFilesystem(Filesystem):
    """Filesystem primitives backed by os and shutil."""

    def list_dir(self, path: str) -> list[FileEntry]:
        """List a directory with os.scandir.

        Entries that vanish or cannot be stat'ed while listing are
        skipped with a debug log; a failure to open the directory
        itself propagates.
        """
        entries: list[FileEntry] = []
        with os.scandir(path) as it:
            for dirent in it:
                try:
                    is_directory = dirent.is_dir()
                    try:
                        st = dirent.stat()
                    except FileNotFoundError:
                        # Dead symlink: describe the link itself
                        st = dirent.stat(follow_symlinks=False)
                except OSError as e:
                    logger.debug("Skipping unreadable entry %s: %s", dirent.path, e)
                    continue
                entries.append(_entry_from_stat(dirent.path, dirent.name, st, is_directory))
        return entries

    def stat(self, path: str) -> FileEntry:
        target = Path(path)
        try:
            st = target.stat()
        except FileNotFoundError:
            if not target.is_symlink():
                raise
            st = target.lstat()
        return _entry_from_stat(str(target), target.name or str(target), st, target.is_dir())

    def exists(self, path: str) -> bool:
        target = Path(path)
        return target.exists() or target.is_symlink()

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def copy(self, source: str, destination: str) -> None:
        """Copy a file (with metadata) or a whole directory tree."""
        src = Path(source)
        if src.is_dir() and not src.is_symlink():
            shutil.copytree(src, destination, symlinks=True)
        else:
            shutil.copy2(src, destination, follow_symlinks=False)

    def move(self, source: str, destination: str) -> None:
        shutil.move(source, destination)

    def delete(self, path: str) -> None:
        """Delete a path.

        Dispatches on the path type:
        - Directories (but not symlinks to directories): shutil.rmtree
        - Files, symlinks and dead symlinks: Path.unlink
        """
        target = Path(path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: str, data: bytes) -> None:
        Path(path).write_bytes(data)

    def make_dir(self, path: str, parents: bool = True) -> None:
        Path(path).mkdir(parents=parents, exist_ok=parents)
