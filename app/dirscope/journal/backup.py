"""Backup and restore helpers for journaled deletions.

Backups live under ``<backup_root>/<operation_id>/<basename>``. Deleted
paths sharing a basename get suffixed slots (``notes (1).txt``), and the
slot owned by each path is recorded. Small regular files are additionally
snapshotted in memory so they can be restored even when the backup
directory is gone.
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from dirscope.errors import IOFailureError
from dirscope.fs.base import Filesystem
from dirscope.fs.operations import unique_destination
from dirscope.models.operation import basename

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeletionBackup:
    """What create_backup saved for one deletion.

    Attributes:
        location: ``<backup_root>/<id>``, or None if nothing was copied.
        copies: Backup copy of each original path that was copied.
        contents: In-memory snapshots keyed by original path.
    """

    location: str | None = None
    copies: dict[str, str] = field(default_factory=dict)
    contents: dict[str, bytes] = field(default_factory=dict)


def backup_location_for(backup_root: str, operation_id: str) -> str:
    """Return the backup directory of an operation."""
    return os.path.join(backup_root, operation_id)


def create_backup(
    fs: Filesystem,
    backup_root: str,
    operation_id: str,
    paths: Iterable[str],
    snapshot_threshold: int,
) -> DeletionBackup:
    """Back up paths that are about to be deleted.

    Every existing path is copied into ``<backup_root>/<operation_id>/``
    under its basename (directories recursively); a taken basename gets a
    numeric suffix instead of being overwritten. Regular files smaller
    than ``snapshot_threshold`` bytes are also read into memory. Failures
    for individual paths are logged and skipped.

    Args:
        fs: Filesystem used for reads and copies.
        backup_root: Root directory for all backups.
        operation_id: Id of the delete operation.
        paths: Paths about to be deleted.
        snapshot_threshold: Size limit in bytes for in-memory snapshots.

    Returns:
        The backup location, the copy made for each path and the snapshots.
    """
    location: str | None = backup_location_for(backup_root, operation_id)
    copies: dict[str, str] = {}
    contents: dict[str, bytes] = {}

    try:
        fs.make_dir(location)
    except OSError as e:
        logger.warning("Failed to create backup directory %s: %s", location, e)
        location = None

    for path in paths:
        if not fs.exists(path):
            logger.debug("Not backing up missing path %s", path)
            continue

        if location is not None and path not in copies:
            try:
                slot = unique_destination(location, basename(path), fs)
                fs.copy(path, slot)
                copies[path] = slot
            except (OSError, IOFailureError) as e:
                logger.warning("Failed to back up %s: %s", path, e)

        try:
            entry = fs.stat(path)
            if entry.is_file and entry.size < snapshot_threshold:
                contents[path] = fs.read_bytes(path)
        except OSError as e:
            logger.warning("Failed to snapshot %s: %s", path, e)

    if location is not None and not copies:
        remove_backup(fs, location)
        location = None

    return DeletionBackup(location=location, copies=copies, contents=contents)


def restore_path(
    fs: Filesystem,
    path: str,
    backup_copy: str | None,
    contents: dict[str, bytes],
) -> bool:
    """Restore one deleted path.

    A path that exists again is left alone, so a restore can be repeated
    after a partial failure. Otherwise the path's own backup copy wins
    over its in-memory snapshot. Missing parent directories are recreated.

    Args:
        fs: Filesystem used for the restore.
        path: Original path to restore.
        backup_copy: Backup copy recorded for this path, if any.
        contents: In-memory snapshots keyed by original path.

    Returns:
        True if the path is present afterwards, False if neither a backup
        nor a snapshot exists for it.

    Raises:
        OSError: If the restore itself fails.
    """
    if fs.exists(path):
        logger.debug("Not restoring %s: it already exists", path)
        return True

    parent = os.path.dirname(path)

    if backup_copy is not None and fs.exists(backup_copy):
        if parent:
            fs.make_dir(parent)
        fs.copy(backup_copy, path)
        return True

    data = contents.get(path)
    if data is not None:
        if parent:
            fs.make_dir(parent)
        fs.write_bytes(path, data)
        return True

    return False


def remove_backup(fs: Filesystem, backup_location: str) -> bool:
    """Delete a backup directory, logging instead of raising.

    Args:
        fs: Filesystem used for the deletion.
        backup_location: Backup directory to remove.

    Returns:
        True if the directory is gone afterwards.
    """
    try:
        if fs.exists(backup_location):
            fs.delete(backup_location)
            logger.debug("Removed backup %s", backup_location)
    except OSError as e:
        logger.warning("Failed to remove backup %s: %s", backup_location, e)
        return False
    return True


@dataclass(frozen=True, slots=True)
class BackupInfo:
    """A backup directory found on disk.

    Attributes:
        operation_id: Id of the delete operation that created it.
        path: Backup directory.
        item_count: Number of top-level items backed up.
        size: Total size of backed-up files in bytes.
        modified: Last modification time of the backup directory.
    """

    operation_id: str
    path: str
    item_count: int
    size: int
    modified: datetime


def _tree_size(fs: Filesystem, path: str) -> int:
    total = 0
    stack = [path]
    while stack:
        current = stack.pop()
        try:
            entries = fs.list_dir(current)
        except OSError as e:
            logger.debug("Cannot size %s: %s", current, e)
            continue
        for entry in entries:
            if entry.is_directory:
                stack.append(entry.path)
            else:
                total += entry.size
    return total


def list_backups(fs: Filesystem, backup_root: str) -> list[BackupInfo]:
    """List backup directories under the backup root, oldest first.

    Args:
        fs: Filesystem used to inspect the backups.
        backup_root: Root directory for all backups.

    Returns:
        One BackupInfo per backup directory; empty if the root is missing.
    """
    if not fs.is_dir(backup_root):
        return []

    backups: list[BackupInfo] = []
    for entry in fs.list_dir(backup_root):
        if not entry.is_directory:
            continue
        try:
            item_count = len(fs.list_dir(entry.path))
        except OSError as e:
            logger.warning("Cannot read backup %s: %s", entry.path, e)
            continue
        backups.append(
            BackupInfo(
                operation_id=entry.name,
                path=entry.path,
                item_count=item_count,
                size=_tree_size(fs, entry.path),
                modified=entry.modified,
            )
        )
    return sorted(backups, key=lambda b: b.modified)
