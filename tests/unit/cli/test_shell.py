"""Unit tests for the interactive shell."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from dirscope.cli.commands.shell import ShellSession
from dirscope.cli.main import app
from dirscope.core.config import EngineConfig
from dirscope.engine import ExplorerEngine
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Working directory with one file and one folder."""
    directory = tmp_path / "work"
    directory.mkdir()
    (directory / "a.txt").write_text("a")
    (directory / "folder").mkdir()
    return directory


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[ExplorerEngine]:
    """Started engine with backups under tmp_path."""
    with ExplorerEngine(EngineConfig(backup_dir=tmp_path / "backups")) as explorer:
        yield explorer


@pytest.fixture
def session(engine: ExplorerEngine, workdir: Path) -> ShellSession:
    """Shell session rooted at workdir."""
    return ShellSession(engine, str(workdir))


class TestShellCommand:
    """Tests for dirscope shell."""

    def test_session_round_trip(self, isolated_xdg: Path, workdir: Path) -> None:
        """Commands from stdin run against one engine, undo included."""
        result = runner.invoke(
            app, ["shell", str(workdir)], input="touch new.txt\nhistory\nundo\nquit\n"
        )

        assert result.exit_code == 0
        assert "Create new.txt" in result.output
        assert "Undone: Create new.txt" in result.output
        assert not (workdir / "new.txt").exists()

    def test_end_of_input_leaves_shell(self, isolated_xdg: Path, workdir: Path) -> None:
        """EOF ends the session cleanly."""
        result = runner.invoke(app, ["shell", str(workdir)], input="ls\n")

        assert result.exit_code == 0
        assert "a.txt" in result.output

    def test_not_a_directory(self, isolated_xdg: Path, workdir: Path) -> None:
        """The starting path must be a directory."""
        result = runner.invoke(app, ["shell", str(workdir / "a.txt")])

        assert result.exit_code == 1


class TestShellSession:
    """Tests for ShellSession command handling."""

    def test_quit_and_blank_lines(self, session: ShellSession) -> None:
        """quit and exit end the session; blank lines do not."""
        assert session.execute("") is True
        assert session.execute("quit") is False
        assert session.execute("exit") is False

    def test_unknown_and_unparsable(
        self, session: ShellSession, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Bad input is reported and the session continues."""
        assert session.execute("frobnicate") is True
        assert session.execute('touch "unterminated') is True

        err = capsys.readouterr().err
        assert "Unknown command: frobnicate" in err
        assert "Cannot parse input" in err

    def test_bracketed_input_is_printed_literally(
        self, session: ShellSession, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Brackets in user input are shown as text, not read as markup."""
        assert session.execute("frobnicate[/b]") is True

        assert "Unknown command: frobnicate[/b]" in capsys.readouterr().err

    def test_cd(self, session: ShellSession, workdir: Path, capsys) -> None:
        """cd changes directory; missing targets are reported."""
        session.execute("cd folder")
        assert session.cwd == str(workdir / "folder")

        session.execute("cd ..")
        assert session.cwd == str(workdir)

        session.execute("cd nowhere")
        assert session.cwd == str(workdir)
        assert "Not a directory" in capsys.readouterr().err

    def test_rm_and_undo(self, session: ShellSession, workdir: Path, capsys) -> None:
        """Deleted files are restored by undo."""
        session.execute("rm a.txt")
        assert not (workdir / "a.txt").exists()

        session.execute("undo")

        assert (workdir / "a.txt").read_text() == "a"
        assert "Undone: Delete 1 item(s)" in capsys.readouterr().out

    def test_rm_missing(self, session: ShellSession, capsys) -> None:
        """Deleting a missing path is an error and records nothing."""
        session.execute("rm ghost.txt")

        assert "No such file or directory" in capsys.readouterr().err
        assert len(session.engine.journal) == 0

    def test_cp_mv_rename(self, session: ShellSession, workdir: Path) -> None:
        """Copy, move and rename act relative to the current directory."""
        session.execute("cp a.txt folder")
        session.execute("mv folder/a.txt .")
        session.execute("rename 'a (1).txt' b.txt")

        assert (workdir / "a.txt").read_text() == "a"
        assert (workdir / "b.txt").read_text() == "a"
        assert not (workdir / "folder" / "a.txt").exists()
        assert len(session.engine.journal) == 3

    def test_mkdir_and_undo_by_id(self, session: ShellSession, workdir: Path) -> None:
        """A specific operation can be undone by id."""
        session.execute("mkdir made")
        operation_id = session.engine.journal.history()[0].id

        session.execute(f"undo {operation_id}")

        assert not (workdir / "made").exists()

    def test_undo_errors(self, session: ShellSession, capsys) -> None:
        """Nothing to undo and unknown ids are reported."""
        session.execute("undo")
        session.execute("undo op_000000000000")

        captured = capsys.readouterr()
        assert "Nothing to undo." in captured.out
        assert "not found" in captured.err

    def test_find(self, session: ShellSession, capsys) -> None:
        """find prints ranked matches of the current directory."""
        session.execute("find a.t")
        session.execute("find -r [")

        captured = capsys.readouterr()
        assert "a.txt" in captured.out
        assert "Invalid pattern" in captured.err

    def test_usage_errors(self, session: ShellSession, capsys) -> None:
        """Missing arguments print usage."""
        session.execute("cp a.txt")
        session.execute("ls . 0")

        err = capsys.readouterr().err
        assert "Usage: cp SRC... DEST" in err
        assert "Page numbers start at 1" in err

    def test_rm_without_backups_warns(self, tmp_path: Path, workdir: Path, capsys) -> None:
        """Deleting with backups disabled warns that undo is impossible."""
        config = EngineConfig(backup_dir=tmp_path / "backups", enable_backups=False)
        with ExplorerEngine(config) as engine:
            ShellSession(engine, str(workdir)).execute("rm a.txt")

        assert "cannot be undone" in capsys.readouterr().err
        assert not (workdir / "a.txt").exists()

    def test_help(self, session: ShellSession, capsys) -> None:
        """help lists the commands."""
        session.execute("help")

        assert "undo [ID]" in capsys.readouterr().out
