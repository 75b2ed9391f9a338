"""CLI package for dirscope.

This package contains the Typer application and all subcommands.
"""

from dirscope.cli.main import app

__all__ = ["app"]
