"""List command for paginated directory listings.

This module provides the `dirscope ls` command, which shows one page
of a directory at a time.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dirscope.core.config import load_config_or_default
from dirscope.engine import ExplorerEngine
from dirscope.models.entry import SortOrder
from dirscope.utils.formatting import (
    console,
    create_entry_table,
    format_entry_row,
    print_error,
    print_info,
)


def ls(
    path: Annotated[
        Path,
        typer.Argument(help="Directory to list."),
    ] = Path("."),
    page: Annotated[
        int,
        typer.Option("--page", "-p", min=1, help="Page number (1-based)."),
    ] = 1,
    page_size: Annotated[
        int | None,
        typer.Option("--page-size", "-n", min=1, help="Entries per page."),
    ] = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include hidden entries."),
    ] = False,
    sort: Annotated[
        SortOrder,
        typer.Option("--sort", "-s", help="Sort order.", case_sensitive=False),
    ] = SortOrder.NAME_ASC,
) -> None:
    """List one page of a directory.

    Examples:
        dirscope ls                  # First page of the current directory
        dirscope ls /var/log -p 3    # Third page
        dirscope ls ~ -a -s size-desc
    """
    engine = ExplorerEngine(load_config_or_default())
    try:
        engine.pagination.set_sort_order(sort)
        size = page_size or engine.pagination.page_size
        dir_page = engine.get_page(str(path), page - 1, size)

        if dir_page.failed:
            print_error(f"Cannot read {escape(str(path))}: {escape(dir_page.error or '')}")
            raise typer.Exit(code=1)

        if dir_page.total_count == 0:
            print_info(f"{escape(str(path))} is empty.")
            return

        by_name = {entry.name: entry for entry in engine.list_entries(str(path))}
        table = create_entry_table(escape(str(path.resolve())))
        shown = 0
        for name in dir_page.items:
            entry = by_name.get(name)
            if entry is None or (entry.hidden and not show_all):
                continue
            table.add_row(*format_entry_row(entry))
            shown += 1

        total_pages = -(-dir_page.total_count // size)
        if shown:
            console.print(table)
        console.print(
            f"[dim]Page {page} of {max(total_pages, 1)} "
            f"({dir_page.total_count} entries, {shown} shown)[/dim]"
        )
        if dir_page.has_more:
            next_command = escape(f"dirscope ls {path} --page {page + 1}")
            console.print(f"[dim]Next page: {next_command}[/dim]")
    finally:
        engine.dispose()
