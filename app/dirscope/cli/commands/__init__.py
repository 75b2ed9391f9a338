"""CLI commands for dirscope.

This package contains all subcommand implementations.
"""

from dirscope.cli.commands import backups, config, find, ls, shell, stats

__all__ = ["backups", "config", "find", "ls", "shell", "stats"]
