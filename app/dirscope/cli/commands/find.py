"""Find command for ranked filename search.

This module provides the `dirscope find` command, which searches the
entries of one directory and prints them by relevance.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dirscope.core.config import load_config_or_default
from dirscope.engine import ExplorerEngine
from dirscope.errors import InvalidPatternError
from dirscope.models.search import PatternType, SearchOptions, SearchResult
from dirscope.utils.formatting import (
    console,
    format_size,
    highlight_matches,
    print_error,
    print_info,
)


def find(
    query: Annotated[
        str,
        typer.Argument(help="Text, wildcard or regular expression to search for."),
    ],
    path: Annotated[
        Path,
        typer.Argument(help="Directory to search."),
    ] = Path("."),
    wildcard: Annotated[
        bool,
        typer.Option("--wildcard", "-w", help="Treat the query as a * and ? pattern."),
    ] = False,
    regex: Annotated[
        bool,
        typer.Option("--regex", "-r", help="Treat the query as a regular expression."),
    ] = False,
    case_sensitive: Annotated[
        bool,
        typer.Option("--case-sensitive", "-c", help="Match case exactly."),
    ] = False,
    hidden: Annotated[
        bool,
        typer.Option("--hidden", "-H", help="Include hidden entries."),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", min=1, help="Maximum number of results."),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Search a directory's entries by name.

    Examples:
        dirscope find report              # Substring match
        dirscope find '*.log' /var/log -w # Wildcard match
        dirscope find '^\\d+' -r --json   # Regex, JSON output
    """
    if wildcard and regex:
        print_error("--wildcard and --regex cannot be combined.")
        raise typer.Exit(code=1)

    if wildcard:
        pattern_type = PatternType.WILDCARD
    elif regex:
        pattern_type = PatternType.REGEX
    else:
        pattern_type = PatternType.LITERAL

    engine = ExplorerEngine(load_config_or_default())
    try:
        try:
            engine.query.validate(query, pattern_type)
        except InvalidPatternError as e:
            print_error(escape(str(e)))
            raise typer.Exit(code=1) from None

        try:
            entries = engine.list_entries(str(path))
        except OSError as e:
            print_error(f"Cannot read {escape(str(path))}: {escape(e.strerror or str(e))}")
            raise typer.Exit(code=1) from None

        options = SearchOptions(
            case_sensitive=case_sensitive,
            pattern_type=pattern_type,
            include_hidden=hidden,
        )
        results = engine.search(query, entries, options)[:limit]
    finally:
        engine.dispose()

    if json_output:
        _print_json(results)
        return

    if not results:
        print_info(f"No matches for '{escape(query)}' in {escape(str(path))}.")
        return

    _print_table(results)


def _print_table(results: list[SearchResult]) -> None:
    """Print search results as a Rich table.

    Args:
        results: Ranked search results.
    """
    table = Table(title="Search Results", header_style="bold_header", border_style="border")
    table.add_column("Name", no_wrap=True)
    table.add_column("Score", style="info", justify="right")
    table.add_column("Size", style="muted", justify="right")
    table.add_column("Type", style="muted")

    for result in results:
        item = result.item
        table.add_row(
            highlight_matches(result),
            f"{result.score:.1f}",
            "-" if item.is_directory else format_size(item.size),
            "dir" if item.is_directory else "file",
        )

    console.print(table)


def _print_json(results: list[SearchResult]) -> None:
    """Print search results as JSON for scripting.

    Args:
        results: Ranked search results.
    """
    data = [
        {
            "path": result.item.path,
            "name": result.item.name,
            "is_directory": result.item.is_directory,
            "score": round(result.score, 2),
            "matches": [[m.start_index, m.end_index] for m in result.matches],
        }
        for result in results
    ]
    typer.echo(json.dumps(data, indent=2))
