"""Stats command for directory size summaries.

This module provides the `dirscope stats` command, which reports how
many entries a directory holds and whether it should be paginated.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dirscope.core.config import load_config_or_default
from dirscope.engine import ExplorerEngine
from dirscope.utils.formatting import console, print_error


def stats(
    path: Annotated[
        Path,
        typer.Argument(help="Directory to inspect."),
    ] = Path("."),
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Count entries in subdirectories too."),
    ] = False,
    max_depth: Annotated[
        int,
        typer.Option("--max-depth", "-d", min=0, help="Maximum depth when recursive."),
    ] = 3,
) -> None:
    """Show entry counts and a pagination hint for a directory.

    Examples:
        dirscope stats /usr/lib
        dirscope stats ~/src -r -d 2
    """
    if not path.is_dir():
        print_error(f"Not a directory: {escape(str(path))}")
        raise typer.Exit(code=1)

    engine = ExplorerEngine(load_config_or_default())
    try:
        dir_stats = engine.pagination.directory_stats(str(path))
        counts = engine.pagination.count_items(str(path), recursive=recursive, max_depth=max_depth)
    finally:
        engine.dispose()

    console.print(f"\n[bold_header]{escape(str(path.resolve()))}[/]")
    console.print(f"  Entries:        {dir_stats.item_count}")
    console.print(f"  Files:          {counts.files}")
    console.print(f"  Directories:    {counts.directories}")
    if recursive:
        console.print(f"  [dim](counted up to depth {max_depth}, total {counts.total})[/dim]")
    console.print(f"  Large:          {'yes' if dir_stats.is_large else 'no'}")
    console.print(f"  Paginate:       {'yes' if dir_stats.recommend_pagination else 'no'}")
    console.print(f"  Est. load time: {dir_stats.estimated_load_ms} ms")
