"""Operation journal with undo and deletion backups."""

from dirscope.journal.backup import (
    BackupInfo,
    DeletionBackup,
    create_backup,
    list_backups,
    remove_backup,
    restore_path,
)
from dirscope.journal.journal import OperationJournal

__all__ = [
    "BackupInfo",
    "DeletionBackup",
    "OperationJournal",
    "create_backup",
    "list_backups",
    "remove_backup",
    "restore_path",
]
