"""Console output helpers for the dirscope CLI.

Tables for entries, search hits and journal operations, plus the shared
themed consoles.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dirscope.core.theme import get_theme

if TYPE_CHECKING:
    from dirscope.models.entry import FileEntry
    from dirscope.models.operation import Operation
    from dirscope.models.search import SearchResult

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def _detect_color_system() -> str | None:
    """Pick a color system for stdout.

    Interactive terminals get "truecolor" so hex palette colors render exactly;
    anything else is left to Rich (None).
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# stdout and stderr consoles share one theme
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size: int) -> str:
    """Format a byte count for humans (e.g. ``1.5 KB``)."""
    value = float(size)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def create_entry_table(title: str) -> Table:
    """Create a pre-configured table for directory entries.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for entry display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Size", style="info", justify="right")
    table.add_column("Modified", style="muted")
    return table


def format_entry_name(entry: FileEntry) -> str:
    """Style an entry name by kind (directory, hidden, file)."""
    name = escape(entry.name)
    if entry.is_directory:
        return f"[directory]{name}/[/]"
    if entry.hidden:
        return f"[hidden]{name}[/]"
    return f"[text]{name}[/]"


def format_entry_row(entry: FileEntry) -> tuple[str, str, str]:
    """Format an entry as a table row.

    Args:
        entry: Entry to format.

    Returns:
        Tuple of (name, size, modified) with Rich markup.
    """
    size = "-" if entry.is_directory else format_size(entry.size)
    modified = entry.modified.astimezone().strftime("%Y-%m-%d %H:%M")
    return (format_entry_name(entry), size, modified)


def highlight_matches(result: SearchResult) -> str:
    """Render a result's filename with its matched spans highlighted."""
    name = result.item.name
    parts: list[str] = []
    cursor = 0
    for match in result.matches:
        parts.append(escape(name[cursor : match.start_index]))
        parts.append(f"[highlight]{escape(name[match.start_index : match.end_index])}[/]")
        cursor = match.end_index
    parts.append(escape(name[cursor:]))
    return "".join(parts)


def format_status(operation: Operation) -> str:
    """Format an operation status with color markup."""
    status = operation.status.value
    return f"[status.{status}]{status}[/]"


def create_operation_table(title: str = "Operation History") -> Table:
    """Create a pre-configured table for journaled operations."""
    table = Table(title=title, show_header=True, header_style="bold_header", border_style="border")
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Time", style="muted")
    table.add_column("Type", style="info")
    table.add_column("Description", style="text", overflow="ellipsis")
    table.add_column("Status")
    return table


def format_operation_row(operation: Operation) -> tuple[str, str, str, str, str]:
    """Format an operation as a table row.

    Args:
        operation: Operation to format.

    Returns:
        Tuple of (id, time, type, description, status) with Rich markup.
    """
    timestamp = operation.timestamp.astimezone().strftime("%H:%M:%S")
    return (
        operation.id,
        timestamp,
        operation.type.value,
        escape(operation.description),
        format_status(operation),
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
