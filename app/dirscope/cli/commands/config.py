"""Configuration commands.

Provides commands to show the effective engine configuration and to
write a config file with every setting spelled out.
"""

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dirscope.core.config import (
    EngineConfig,
    config_to_dict,
    load_config,
    save_config,
)
from dirscope.core.paths import ensure_config_dir, get_config_path
from dirscope.errors import ConfigError, ConfigNotFoundError
from dirscope.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and initialize the configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective configuration and where it comes from."""
    config_path = get_config_path()
    try:
        config = load_config(config_path)
        source = str(config_path)
    except ConfigNotFoundError:
        config = EngineConfig()
        source = "defaults (no config file)"
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from None

    customized = config_to_dict(config)

    table = Table(title="Configuration", header_style="bold_header", border_style="border")
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="info")
    table.add_column("", style="muted")

    for name in EngineConfig.model_fields:
        value = getattr(config, name)
        if name == "backup_dir":
            value = config.effective_backup_dir
        table.add_row(name, str(value), "custom" if name in customized else "default")

    console.print(table)
    console.print(f"[dim]Source: {escape(str(source))}[/dim]")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file containing every default setting."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {escape(str(config_path))}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        ensure_config_dir()
        saved = save_config(EngineConfig(), config_path, include_defaults=True)
    except (ConfigError, RuntimeError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from None

    print_success(f"Config written to {escape(str(saved))}")
