"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
import os
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from dirscope.fs.local import LocalFilesystem
from dirscope.models.entry import FileEntry

OLD_TIMESTAMP = datetime(2020, 1, 1, tzinfo=UTC)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo logging configuration done by CLI invocations."""
    yield
    package_logger = logging.getLogger("dirscope")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    """Fake monotonic clock starting at 1000 seconds."""
    return FakeClock()


@pytest.fixture
def local_fs() -> LocalFilesystem:
    """Filesystem primitives backed by the real disk."""
    return LocalFilesystem()


@pytest.fixture
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories into tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    return tmp_path


@pytest.fixture
def make_entry() -> Callable[..., FileEntry]:
    """Factory for FileEntry objects with old timestamps by default."""

    def _make(
        name: str,
        is_directory: bool = False,
        size: int = 100,
        modified: datetime = OLD_TIMESTAMP,
        parent: str = "/data",
    ) -> FileEntry:
        return FileEntry(
            path=os.path.join(parent, name),
            name=name,
            is_directory=is_directory,
            size=size,
            modified=modified,
            hidden=name.startswith("."),
        )

    return _make


@pytest.fixture
def populated_dir(tmp_path: Path) -> Path:
    """Directory holding 25 files named file_00.txt .. file_24.txt."""
    directory = tmp_path / "many"
    directory.mkdir()
    for i in range(25):
        (directory / f"file_{i:02d}.txt").write_text(f"content {i}")
    return directory
