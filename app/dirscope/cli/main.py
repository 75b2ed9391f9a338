"""dirscope command line.

Builds the Typer app, wires the global flags and installs the Rich log handler.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from dirscope import __version__
from dirscope.cli.commands import backups, config, find, ls, shell, stats
from dirscope.utils.formatting import err_console


app = typer.Typer(
    name="dirscope",
    help="Fast, paginated, searchable directory explorer with undo.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Handle --version."""
    if value:
        typer.echo(f"dirscope version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route library logging to stderr through Rich.

    Args:
        verbose: Show debug messages.
        quiet: Show errors only.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("dirscope")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Print the version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug messages.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Log errors only.",
        ),
    ] = False,
) -> None:
    """dirscope - Explore large directories quickly.

    Browse directories page by page, search them with ranked results,
    and undo file operations made in an interactive session.
    """
    configure_logging(verbose, quiet)

    # Subcommands read the global flags from ctx.obj
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Subcommands
app.command(name="ls")(ls.ls)
app.command(name="find")(find.find)
app.command(name="stats")(stats.stats)
app.command(name="shell")(shell.shell)
app.add_typer(backups.app, name="backups")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
