"""Interactive shell for browsing and undoable file operations.

This module provides the `dirscope shell` command. One engine stays
alive for the whole session so the operation journal can undo what
the session did.
"""

import os
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dirscope.core.config import load_config_or_default
from dirscope.engine import ExplorerEngine
from dirscope.errors import DirscopeError
from dirscope.models.search import PatternType, SearchOptions
from dirscope.utils.formatting import (
    console,
    create_entry_table,
    create_operation_table,
    format_entry_row,
    format_operation_row,
    highlight_matches,
    print_error,
    print_info,
    print_success,
    print_warning,
)

HELP_TEXT = """\
Commands:
  ls [PATH] [PAGE]        List a page of a directory
  cd PATH                 Change the current directory
  find [-w|-r] QUERY      Search the current directory
  cp SRC... DEST          Copy into a directory
  mv SRC... DEST          Move into a directory
  rm PATH...              Delete (undoable)
  rename PATH NEW_NAME    Rename in place
  touch PATH              Create an empty file
  mkdir PATH              Create a directory
  history                 Show this session's operations
  undo [ID]               Undo an operation (default: the latest)
  help                    Show this help
  quit                    Leave the shell"""


class ShellSession:
    """Command interpreter bound to one engine and a working directory.

    Args:
        engine: Engine kept alive for the session.
        cwd: Starting directory.
    """

    def __init__(self, engine: ExplorerEngine, cwd: str) -> None:
        self.engine = engine
        self.cwd = os.path.abspath(cwd)
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "ls": self.do_ls,
            "cd": self.do_cd,
            "find": self.do_find,
            "cp": self.do_cp,
            "mv": self.do_mv,
            "rm": self.do_rm,
            "rename": self.do_rename,
            "touch": self.do_touch,
            "mkdir": self.do_mkdir,
            "history": self.do_history,
            "undo": self.do_undo,
            "help": self.do_help,
        }

    def resolve(self, path: str) -> str:
        """Resolve a user-typed path against the current directory."""
        return os.path.normpath(os.path.join(self.cwd, os.path.expanduser(path)))

    def execute(self, line: str) -> bool:
        """Run one command line.

        Args:
            line: Raw input line.

        Returns:
            False when the session should end, True otherwise.
        """
        try:
            words = shlex.split(line)
        except ValueError as e:
            print_error(f"Cannot parse input: {escape(str(e))}")
            return True

        if not words:
            return True

        name, args = words[0], words[1:]
        if name in ("quit", "exit"):
            return False

        command = self._commands.get(name)
        if command is None:
            print_error(f"Unknown command: {escape(name)} (try 'help')")
            return True

        try:
            command(args)
        except (DirscopeError, OSError, ValueError) as e:
            print_error(escape(str(e)))
        return True

    # =========================================================================
    # Browsing
    # =========================================================================

    def do_ls(self, args: list[str]) -> None:
        target = self.resolve(args[0]) if args else self.cwd
        page_number = int(args[1]) if len(args) > 1 else 1
        if page_number < 1:
            msg = "Page numbers start at 1"
            raise ValueError(msg)

        page = self.engine.get_page(target, page_number - 1)
        if page.failed:
            print_error(f"Cannot read {escape(target)}: {escape(page.error or '')}")
            return
        if page.total_count == 0:
            print_info("(empty)")
            return

        by_name = {entry.name: entry for entry in self.engine.list_entries(target)}
        table = create_entry_table(escape(target))
        for name in page.items:
            entry = by_name.get(name)
            if entry is not None:
                table.add_row(*format_entry_row(entry))
        console.print(table)
        if page.has_more:
            next_command = escape(f"ls {shlex.quote(target)} {page_number + 1}")
            console.print(f"[dim]More entries: {next_command}[/dim]")

    def do_cd(self, args: list[str]) -> None:
        target = self.resolve(args[0]) if args else str(Path.home())
        if not self.engine.filesystem.is_dir(target):
            msg = f"Not a directory: {target}"
            raise NotADirectoryError(msg)
        self.cwd = target

    def do_find(self, args: list[str]) -> None:
        pattern_type = PatternType.LITERAL
        if args and args[0] in ("-w", "-r"):
            pattern_type = PatternType.WILDCARD if args[0] == "-w" else PatternType.REGEX
            args = args[1:]
        if not args:
            msg = "Usage: find [-w|-r] QUERY"
            raise ValueError(msg)

        query = " ".join(args)
        self.engine.query.validate(query, pattern_type)
        entries = self.engine.list_entries(self.cwd)
        results = self.engine.search(query, entries, SearchOptions(pattern_type=pattern_type))
        if not results:
            print_info(f"No matches for '{escape(query)}'.")
            return
        for result in results[:20]:
            console.print(f"  {highlight_matches(result)}  [dim]{result.score:.1f}[/dim]")
        if len(results) > 20:
            console.print(f"  [dim]... and {len(results) - 20} more[/dim]")

    # =========================================================================
    # Mutations
    # =========================================================================

    def _report(self, operation_id: str) -> None:
        operation = self.engine.journal.get(operation_id)
        description = operation.description if operation else operation_id
        print_success(f"{escape(description)} ({operation_id})")

    def do_cp(self, args: list[str]) -> None:
        if len(args) < 2:
            msg = "Usage: cp SRC... DEST"
            raise ValueError(msg)
        sources = [self.resolve(arg) for arg in args[:-1]]
        self._report(self.engine.operations.copy(sources, self.resolve(args[-1])))

    def do_mv(self, args: list[str]) -> None:
        if len(args) < 2:
            msg = "Usage: mv SRC... DEST"
            raise ValueError(msg)
        sources = [self.resolve(arg) for arg in args[:-1]]
        self._report(self.engine.operations.move(sources, self.resolve(args[-1])))

    def do_rm(self, args: list[str]) -> None:
        if not args:
            msg = "Usage: rm PATH..."
            raise ValueError(msg)
        paths = [self.resolve(arg) for arg in args]
        missing = [path for path in paths if not self.engine.filesystem.exists(path)]
        if missing:
            msg = f"No such file or directory: {missing[0]}"
            raise FileNotFoundError(msg)
        if not self.engine.config.enable_backups:
            print_warning("Backups are disabled; this deletion cannot be undone.")
        self._report(self.engine.operations.delete(paths))

    def do_rename(self, args: list[str]) -> None:
        if len(args) != 2:
            msg = "Usage: rename PATH NEW_NAME"
            raise ValueError(msg)
        self._report(self.engine.operations.rename(self.resolve(args[0]), args[1]))

    def do_touch(self, args: list[str]) -> None:
        if len(args) != 1:
            msg = "Usage: touch PATH"
            raise ValueError(msg)
        self._report(self.engine.operations.create_file(self.resolve(args[0])))

    def do_mkdir(self, args: list[str]) -> None:
        if len(args) != 1:
            msg = "Usage: mkdir PATH"
            raise ValueError(msg)
        self._report(self.engine.operations.create_folder(self.resolve(args[0])))

    # =========================================================================
    # Journal
    # =========================================================================

    def do_history(self, args: list[str]) -> None:
        operations = self.engine.journal.history()
        if not operations:
            print_info("No operations yet.")
            return
        table = create_operation_table()
        for operation in operations:
            table.add_row(*format_operation_row(operation))
        console.print(table)

    def do_undo(self, args: list[str]) -> None:
        if args:
            operation_id = args[0]
        else:
            undoable = self.engine.journal.undoable(limit=1)
            if not undoable:
                print_info("Nothing to undo.")
                return
            operation_id = undoable[0].id

        self.engine.undo(operation_id)
        operation = self.engine.journal.get(operation_id)
        description = operation.description if operation else operation_id
        print_success(f"Undone: {escape(description)}")

    def do_help(self, args: list[str]) -> None:
        console.print(HELP_TEXT, markup=False, highlight=False)


def shell(
    path: Annotated[
        Path,
        typer.Argument(help="Starting directory."),
    ] = Path("."),
) -> None:
    """Start an interactive session with undoable file operations.

    Type 'help' inside the shell for the list of commands.

    Examples:
        dirscope shell
        dirscope shell ~/Downloads
    """
    if not path.is_dir():
        print_error(f"Not a directory: {escape(str(path))}")
        raise typer.Exit(code=1)

    with ExplorerEngine(load_config_or_default()) as engine:
        session = ShellSession(engine, str(path))
        print_info("dirscope shell. Type 'help' for commands, 'quit' to leave.")
        while True:
            try:
                line = console.input(f"[bold_header]{escape(session.cwd)}[/] [dim]>[/dim] ")
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if not session.execute(line):
                break
