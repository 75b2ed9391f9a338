"""Unit tests for engine configuration.

Tests for validation, TOML loading, atomic saving and default
handling.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from dirscope.core.config import (
    EngineConfig,
    config_to_dict,
    load_config,
    load_config_or_default,
    save_config,
)
from dirscope.errors import ConfigError, ConfigNotFoundError, ConfigParseError


class TestEngineConfig:
    """Tests for the EngineConfig model."""

    def test_defaults(self) -> None:
        """Defaults match the documented engine behavior."""
        config = EngineConfig()

        assert config.cache_ttl_seconds == 30.0
        assert config.page_size == 100
        assert config.max_items == 1000
        assert config.batch_size == 50
        assert config.search_history_size == 50
        assert config.journal_max_history == 100
        assert config.enable_backups is True
        assert config.cleanup_age_seconds == 7 * 24 * 60 * 60
        assert config.snapshot_threshold_bytes == 1024 * 1024

    def test_rejects_invalid_values(self) -> None:
        """Out-of-range values and unknown keys are rejected."""
        with pytest.raises(ValueError):
            EngineConfig(page_size=0)
        with pytest.raises(ValueError):
            EngineConfig(cache_ttl_seconds=0)
        with pytest.raises(ValueError):
            EngineConfig(unknown=1)  # type: ignore[call-arg]

    def test_effective_backup_dir(self, isolated_xdg: Path) -> None:
        """backup_dir falls back to the XDG state directory."""
        assert EngineConfig().effective_backup_dir == (
            isolated_xdg / "state" / "dirscope" / "backups"
        )
        custom = isolated_xdg / "mine"
        assert EngineConfig(backup_dir=custom).effective_backup_dir == custom


class TestLoadConfig:
    """Tests for load_config and load_config_or_default."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        """Settings in the file override defaults."""
        path = tmp_path / "config.toml"
        path.write_text("page_size = 25\nenable_backups = false\n")

        config = load_config(path)

        assert config.page_size == 25
        assert config.enable_backups is False
        assert config.max_items == 1000

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("page_size = = 3\n")

        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("page_size = -1\n")

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_or_default_falls_back(self, tmp_path: Path) -> None:
        """Missing and broken files both yield defaults."""
        broken = tmp_path / "broken.toml"
        broken.write_text("page_size = 'many'\n")

        assert load_config_or_default(tmp_path / "missing.toml") == EngineConfig()
        assert load_config_or_default(broken) == EngineConfig()


class TestSaveConfig:
    """Tests for save_config and config_to_dict."""

    def test_only_customized_values_are_written(self) -> None:
        """Defaults and None values are omitted."""
        config = EngineConfig(page_size=10, backup_dir=Path("/tmp/b"))

        assert config_to_dict(config) == {"page_size": 10, "backup_dir": "/tmp/b"}

    def test_include_defaults(self) -> None:
        """All non-None settings are written when asked."""
        data = config_to_dict(EngineConfig(), include_defaults=True)

        assert data["page_size"] == 100
        assert "backup_dir" not in data
        assert len(data) == len(EngineConfig.model_fields) - 1

    def test_round_trip_through_file(self, tmp_path: Path) -> None:
        """A saved config loads back equal."""
        path = tmp_path / "nested" / "config.toml"
        config = EngineConfig(page_size=42, search_debounce_seconds=0.5)

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config
        assert list(path.parent.glob("*.tmp")) == []

    def test_write_failure(self, tmp_path: Path) -> None:
        """OS errors while writing become ConfigError and leave no temp file."""
        path = tmp_path / "config.toml"

        with (
            patch("dirscope.core.config.os.replace", side_effect=OSError("disk full")),
            pytest.raises(ConfigError, match="Failed to write config"),
        ):
            save_config(EngineConfig(page_size=5), path)

        assert list(tmp_path.glob("*.tmp")) == []
        assert not path.exists()
