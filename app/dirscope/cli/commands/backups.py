"""Backup management commands.

Provides commands to list the deletion backups left on disk by earlier
sessions and to reclaim the space they use.
"""

from datetime import UTC, datetime, timedelta
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dirscope.core.config import load_config_or_default
from dirscope.fs.local import LocalFilesystem
from dirscope.journal.backup import BackupInfo, list_backups, remove_backup
from dirscope.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
)

app = typer.Typer(
    help="Manage deletion backups.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command("list")
def list_command() -> None:
    """List backup directories, oldest first."""
    config = load_config_or_default()
    backup_root = config.effective_backup_dir
    backups = list_backups(LocalFilesystem(), str(backup_root))

    if not backups:
        print_info(f"No backups in {escape(str(backup_root))}.")
        return

    _print_table(backups)
    total = sum(b.size for b in backups)
    console.print(
        f"\n[dim]{len(backups)} backups ({format_size(total)} total) in {backup_root}[/dim]"
    )


@app.command()
def clean(
    older_than: Annotated[
        float | None,
        typer.Option(
            "--older-than",
            "-o",
            min=0,
            help="Only remove backups older than this many days (default: cleanup age).",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove old backup directories."""
    config = load_config_or_default()
    fs = LocalFilesystem()
    max_age = (
        timedelta(days=older_than)
        if older_than is not None
        else timedelta(seconds=config.cleanup_age_seconds)
    )
    cutoff = datetime.now(UTC) - max_age

    stale = [b for b in list_backups(fs, str(config.effective_backup_dir)) if b.modified < cutoff]
    if not stale:
        print_info("No backups to clean.")
        return

    _print_table(stale)

    if not yes:
        confirmed = typer.confirm(f"\nDelete {len(stale)} backup(s)?", default=False)
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    failed = [b for b in stale if not remove_backup(fs, b.path)]
    removed = len(stale) - len(failed)
    if removed:
        print_success(f"Removed {removed} backup(s).")
    if failed:
        for backup in failed:
            print_error(f"Could not remove {escape(backup.path)}")
        raise typer.Exit(code=1)


# === Private helper functions ===


def _print_table(backups: list[BackupInfo]) -> None:
    """Display backups as a Rich table."""
    table = Table(title="Deletion Backups", header_style="bold_header", border_style="border")
    table.add_column("Operation", style="muted", no_wrap=True)
    table.add_column("Items", justify="right")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Created", style="muted")

    for backup in backups:
        table.add_row(
            backup.operation_id,
            str(backup.item_count),
            format_size(backup.size),
            backup.modified.astimezone().strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
