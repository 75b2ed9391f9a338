"""Engine configuration and settings.

This module provides the configuration model and I/O functions for the
explorer engine: cache lifetimes, pagination sizes, search history
limits and journal retention.

Configuration is stored in ~/.config/dirscope/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dirscope.core.paths import get_backup_dir, get_config_path
from dirscope.errors import ConfigError, ConfigNotFoundError, ConfigParseError

logger = logging.getLogger(__name__)

ONE_MIB = 1024 * 1024
SEVEN_DAYS = 7 * 24 * 60 * 60


class EngineConfig(BaseModel):
    """Configuration for the explorer engine.

    Attributes:
        cache_ttl_seconds: Lifetime of cached listings and pages.
        cache_sweep_interval_seconds: How often expired cache entries are reclaimed.
        page_size: Default number of entries per directory page.
        max_items: Directory size above which a directory counts as large.
        batch_size: Default number of concurrent workers per batch.
        batch_delay_seconds: Pause between batches to keep callers responsive.
        search_history_size: Maximum number of remembered queries.
        search_debounce_seconds: Quiet period before a debounced search runs.
        journal_max_history: Maximum number of journaled operations.
        enable_backups: Copy deleted paths into the backup root.
        backup_dir: Backup root. If None, uses the XDG state directory.
        cleanup_age_seconds: Age after which journaled operations expire.
        cleanup_interval_seconds: How often expired operations are swept.
        snapshot_threshold_bytes: Files below this size are also kept in memory.
    """

    model_config = ConfigDict(extra="forbid")

    cache_ttl_seconds: Annotated[
        float,
        Field(gt=0, description="Lifetime of cached entries in seconds"),
    ] = 30.0
    cache_sweep_interval_seconds: Annotated[
        float,
        Field(gt=0, description="Expired cache sweep interval in seconds"),
    ] = 60.0
    page_size: Annotated[
        int,
        Field(ge=1, le=10_000, description="Entries per directory page"),
    ] = 100
    max_items: Annotated[
        int,
        Field(ge=1, description="Entry count above which a directory is large"),
    ] = 1000
    batch_size: Annotated[
        int,
        Field(ge=1, le=512, description="Concurrent workers per batch"),
    ] = 50
    batch_delay_seconds: Annotated[
        float,
        Field(ge=0, description="Pause between batches in seconds"),
    ] = 0.01
    search_history_size: Annotated[
        int,
        Field(ge=1, description="Maximum remembered search queries"),
    ] = 50
    search_debounce_seconds: Annotated[
        float,
        Field(ge=0, description="Debounce window for interactive search"),
    ] = 0.3
    journal_max_history: Annotated[
        int,
        Field(ge=1, description="Maximum journaled operations"),
    ] = 100
    enable_backups: Annotated[
        bool,
        Field(description="Back up deleted paths so deletes can be undone"),
    ] = True
    backup_dir: Annotated[
        Path | None,
        Field(description="Backup root (None = XDG state directory)"),
    ] = None
    cleanup_age_seconds: Annotated[
        float,
        Field(gt=0, description="Age after which journaled operations expire"),
    ] = float(SEVEN_DAYS)
    cleanup_interval_seconds: Annotated[
        float,
        Field(gt=0, description="Journal cleanup interval in seconds"),
    ] = 3600.0
    snapshot_threshold_bytes: Annotated[
        int,
        Field(ge=0, description="Files smaller than this are kept in memory on delete"),
    ] = ONE_MIB

    @property
    def effective_backup_dir(self) -> Path:
        """Get the backup root in use.

        Returns:
            The configured backup_dir, or the default XDG backup directory.
        """
        if self.backup_dir is not None:
            return self.backup_dir
        return get_backup_dir()


def load_config(path: Path | None = None) -> EngineConfig:
    """Load engine configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated EngineConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return EngineConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> EngineConfig:
    """Load engine configuration, falling back to defaults.

    A missing file silently yields the defaults. A broken file is
    logged and also yields the defaults so the engine stays usable.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Loaded or default EngineConfig.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return EngineConfig()
    except ConfigError as e:
        logger.warning("Ignoring invalid config, using defaults: %s", e)
        return EngineConfig()


def save_config(
    config: EngineConfig,
    path: Path | None = None,
    include_defaults: bool = False,
) -> Path:
    """Save engine configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The EngineConfig object to save.
        path: Path to save the config. If None, uses the default config path.
        include_defaults: Also write settings that have their default value.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config, include_defaults=include_defaults)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: EngineConfig, include_defaults: bool = False) -> dict[str, object]:
    """Convert EngineConfig to a dictionary for TOML serialization.

    Only includes values that differ from the defaults unless asked
    otherwise, to keep the file clean. None values are always dropped
    since TOML has no null.

    Args:
        config: The EngineConfig to convert.
        include_defaults: Include settings that still have their default value.

    Returns:
        Dictionary ready for TOML serialization.
    """
    defaults = EngineConfig()
    result: dict[str, object] = {}

    for name in EngineConfig.model_fields:
        value = getattr(config, name)
        if value is None:
            continue
        if not include_defaults and value == getattr(defaults, name):
            continue
        result[name] = str(value) if isinstance(value, Path) else value

    return result
