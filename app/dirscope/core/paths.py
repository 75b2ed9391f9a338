"""Where dirscope keeps its files.

Settings and the theme override live in the XDG config directory
(``~/.config/dirscope/``). Deletion backups are the only state the
engine writes to disk; they live under the XDG state directory
(``~/.local/state/dirscope/backups/``). The directory cache and the
search history stay in memory.
"""

import os
from pathlib import Path

APP_NAME = "dirscope"


def _xdg_base(env_var: str, fallback: str) -> Path:
    """Resolve an XDG base directory for dirscope.

    Args:
        env_var: Environment variable overriding the base (e.g. "XDG_STATE_HOME").
        fallback: Base relative to the home directory when the variable is unset or empty.

    Returns:
        ``<base>/dirscope``.
    """
    override = os.environ.get(env_var)
    base = Path(override) if override else Path.home() / fallback
    return base / APP_NAME


def get_config_dir() -> Path:
    """Directory holding config.toml and theme.toml."""
    return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Directory holding on-disk engine state."""
    return _xdg_base("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Engine settings file."""
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Optional color override file for the CLI."""
    return get_config_dir() / "theme.toml"


def get_backup_dir() -> Path:
    """Default backup root.

    A journaled deletion copies its paths into ``<backup root>/<operation id>/``
    so the deletion can be undone.
    """
    return get_state_dir() / "backups"


def ensure_dir(path: Path, purpose: str) -> Path:
    """Create a directory and its parents.

    Args:
        path: Directory to create.
        purpose: What the directory is for, used in error messages.

    Returns:
        The directory path.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {purpose} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {purpose} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the config directory. Raises RuntimeError on failure."""
    return ensure_dir(get_config_dir(), "config")


def ensure_backup_dir(path: Path | None = None) -> Path:
    """Create a backup root, the default one unless ``path`` is given.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return ensure_dir(path or get_backup_dir(), "backup")
