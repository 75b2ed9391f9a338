"""Color palette for the dirscope CLI.

Listings, search highlights and operation statuses are styled from a
small palette. Every color can be overridden in the ``[colors]`` table
of ~/.config/dirscope/theme.toml; invalid overrides fall back to the
defaults with a warning.
"""

import logging
import sys
import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from rich.theme import Theme

from dirscope.core.paths import get_theme_path

logger = logging.getLogger(__name__)


def _check_hex(value: object) -> str:
    if not isinstance(value, str):
        msg = "color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = "color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = "color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    try:
        int(digits, 16)
    except ValueError:
        msg = f"invalid hex color '{color}'"
        raise ValueError(msg) from None
    return color


HexColor = Annotated[str, BeforeValidator(_check_hex)]


class ThemeColors(BaseModel):
    """Palette used by the CLI. Colors are #RGB or #RRGGBB hex codes."""

    model_config = ConfigDict(extra="forbid")

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    directory: HexColor = "#0e8ac8"
    hidden: HexColor = "#636e72"
    highlight: HexColor = "#faf870"

    status_pending: HexColor = "#b2bec3"
    status_completed: HexColor = "#03b971"
    status_failed: HexColor = "#f53263"
    status_undone: HexColor = "#d44ebc"


# Rich style name -> (palette field, bold)
_STYLES: dict[str, tuple[str, bool]] = {
    "text": ("text", False),
    "muted": ("muted", False),
    "dim": ("muted", False),
    "header": ("header", False),
    "bold_header": ("header", True),
    "border": ("border", False),
    "success": ("success", False),
    "warning": ("warning", False),
    "error": ("error", True),
    "info": ("info", False),
    "directory": ("directory", True),
    "hidden": ("hidden", False),
    "highlight": ("highlight", True),
    "status.pending": ("status_pending", False),
    "status.in_progress": ("status_pending", False),
    "status.completed": ("status_completed", False),
    "status.failed": ("status_failed", True),
    "status.undone": ("status_undone", False),
}


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Args:
        path: Theme file to read.

    Returns:
        String-valued color overrides, or None if the file is missing
        or unreadable.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    section = data.get("colors", {})
    if not isinstance(section, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {key: value for key, value in section.items() if isinstance(value, str)}


def load_theme(path: Path | None = None) -> ThemeColors:
    """Build the palette from defaults and the user's overrides.

    Args:
        path: Override file to read. Defaults to ~/.config/dirscope/theme.toml.
    """
    theme_path = path or get_theme_path()
    overrides = _load_toml_colors(theme_path)
    if not overrides:
        return ThemeColors()

    try:
        colors = ThemeColors.model_validate(overrides)
    except ValidationError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        print(f"Warning: Invalid theme configuration in {theme_path}: {e}", file=sys.stderr)
        return ThemeColors()
    logger.debug("Loaded theme overrides from %s", theme_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Map a palette onto the Rich styles used by the CLI.

    Args:
        colors: Palette to use. Loads the user's palette if None.

    Returns:
        Rich Theme with one style per entry in the style table.
    """
    palette = colors or load_theme()
    styles: dict[str, str] = {}
    for style, (field, bold) in _STYLES.items():
        color = getattr(palette, field)
        styles[style] = f"bold {color}" if bold else color
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the cached Rich theme, building it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme


def reload_theme() -> Theme:
    """Rebuild the cached Rich theme from the override file."""
    global _cached_theme
    _cached_theme = get_rich_theme()
    return _cached_theme
