"""Unit tests for the rm command.

Tests for the deltree rm command implementation.
"""

import errno
import logging
import shutil
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from deltree import __version__
from deltree.cli.main import app
from deltree.deletion.errors import ContentionError, PermanentDeletionError
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the settings lookup at an empty config directory."""
    config_home = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "deltree"


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo the logging setup done by the CLI callback."""
    logger = logging.getLogger("deltree")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """A small directory tree to delete."""
    root = tmp_path / "tree"
    (root / "nested").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "nested" / "b.txt").write_text("b")
    return root


def _contention(path: Path) -> ContentionError:
    return ContentionError(path, [path / "busy.txt"], 3)


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "rm" in result.output

    def test_verbose_enables_debug_logging(self, tree: Path) -> None:
        result = runner.invoke(app, ["--verbose", "rm", str(tree)])

        assert result.exit_code == 0
        assert logging.getLogger("deltree").level == logging.DEBUG

    def test_quiet_logs_errors_only(self, tree: Path) -> None:
        result = runner.invoke(app, ["--quiet", "rm", str(tree)])

        assert result.exit_code == 0
        assert logging.getLogger("deltree").level == logging.ERROR


class TestRmCommand:
    """Tests for deltree rm command."""

    def test_rm_help(self) -> None:
        result = runner.invoke(app, ["rm", "--help"])

        assert result.exit_code == 0
        assert "--timeout" in result.output

    def test_deletes_tree(self, tree: Path) -> None:
        result = runner.invoke(app, ["rm", str(tree)])

        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert not tree.exists()

    def test_deletes_several_paths(self, tree: Path, tmp_path: Path) -> None:
        other = tmp_path / "other.txt"
        other.write_text("x")

        result = runner.invoke(app, ["rm", str(tree), str(other)])

        assert result.exit_code == 0
        assert not tree.exists()
        assert not other.exists()

    def test_missing_path(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["rm", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_missing_path_does_not_stop_others(self, tree: Path, tmp_path: Path) -> None:
        """Every path is attempted; failures only affect the exit code."""
        result = runner.invoke(app, ["rm", str(tmp_path / "missing"), str(tree)])

        assert result.exit_code == 1
        assert not tree.exists()

    def test_negative_timeout_rejected(self, tree: Path) -> None:
        result = runner.invoke(app, ["rm", "--timeout", "-1", str(tree)])

        assert result.exit_code == 2
        assert tree.exists()

    def test_timeout_passed_through(self, tree: Path) -> None:
        with patch("deltree.cli.commands.rm.delete_tree") as delete:
            result = runner.invoke(app, ["rm", "-t", "2.5", str(tree)])

        assert result.exit_code == 0
        assert delete.call_args.args[0] == tree
        assert delete.call_args.args[1] == 2.5

    def test_default_timeout_from_settings(self, tree: Path, isolated_config: Path) -> None:
        isolated_config.mkdir(parents=True)
        (isolated_config / "config.toml").write_text("[retry]\ndefault_timeout = 4.0\n")

        with patch("deltree.cli.commands.rm.delete_tree") as delete:
            result = runner.invoke(app, ["rm", str(tree)])

        assert result.exit_code == 0
        assert delete.call_args.args[1] == 4.0
        assert delete.call_args.kwargs["settings"].default_timeout == 4.0

    def test_no_timeout_is_unbounded(self, tree: Path) -> None:
        with patch("deltree.cli.commands.rm.delete_tree") as delete:
            runner.invoke(app, ["rm", str(tree)])

        assert delete.call_args.args[1] is None

    def test_invalid_settings_file(self, tree: Path, isolated_config: Path) -> None:
        isolated_config.mkdir(parents=True)
        (isolated_config / "config.toml").write_text("[retry]\nretry_interval = 0\n")

        result = runner.invoke(app, ["rm", str(tree)])

        assert result.exit_code == 1
        assert tree.exists()

    def test_reports_retries(self, tree: Path) -> None:
        def retry_twice(
            path: Path, timeout: float | None, on_retry: Callable[[], None], **kwargs: object
        ) -> None:
            on_retry()
            on_retry()

        with patch("deltree.cli.commands.rm.delete_tree", side_effect=retry_twice):
            result = runner.invoke(app, ["rm", str(tree)])

        assert result.exit_code == 0
        assert "retries" in result.output

    def test_permanent_failure(self, tree: Path) -> None:
        cause = PermissionError(errno.EACCES, "Permission denied")
        error = PermanentDeletionError(tree, tree / "a.txt", cause)

        with patch("deltree.cli.commands.rm.delete_tree", side_effect=error):
            result = runner.invoke(app, ["rm", str(tree)])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestRmContention:
    """Tests for busy entries handed to the background."""

    def test_handoff_is_not_a_failure(self, tree: Path) -> None:
        with patch("deltree.cli.commands.rm.delete_tree", side_effect=_contention(tree)):
            result = runner.invoke(app, ["rm", "-t", "0", str(tree)])

        assert result.exit_code == 0
        assert "background" in result.output

    def test_wait_for_finished_background(self, tree: Path) -> None:
        """--wait succeeds once the background deletion has removed the path."""
        waiter = MagicMock(return_value=True)

        def contend_then_vanish(path: Path, *args: object, **kwargs: object) -> None:
            shutil.rmtree(path)
            raise _contention(path)

        with (
            patch("deltree.cli.commands.rm.delete_tree", side_effect=contend_then_vanish),
            patch("deltree.cli.commands.rm.wait_for_background", waiter),
        ):
            result = runner.invoke(app, ["rm", "--wait", str(tree)])

        assert result.exit_code == 0
        waiter.assert_called_once()

    def test_wait_for_unfinished_background(self, tree: Path) -> None:
        """--wait fails if the path is still there after the background gave up."""
        with (
            patch("deltree.cli.commands.rm.delete_tree", side_effect=_contention(tree)),
            patch("deltree.cli.commands.rm.wait_for_background", return_value=True),
        ):
            result = runner.invoke(app, ["rm", "--wait", str(tree)])

        assert result.exit_code == 1
        assert "did not finish" in result.output

    def test_wait_checks_where_the_tree_was_moved(self, tree: Path, tmp_path: Path) -> None:
        """--wait looks for the leftovers where the deletion moved them."""
        moved = tmp_path / ".tree.deltree-0"

        def contend_after_move(path: Path, *args: object, **kwargs: object) -> None:
            path.rename(moved)
            raise ContentionError(path, [moved / "a.txt"], 1, location=moved)

        with (
            patch("deltree.cli.commands.rm.delete_tree", side_effect=contend_after_move),
            patch("deltree.cli.commands.rm.wait_for_background", return_value=True),
        ):
            result = runner.invoke(app, ["rm", "--wait", str(tree)])

        assert result.exit_code == 1
        assert "did not finish" in result.output

    def test_no_wait_without_handoff(self, tree: Path) -> None:
        with patch("deltree.cli.commands.rm.wait_for_background") as waiter:
            result = runner.invoke(app, ["rm", "--wait", str(tree)])

        assert result.exit_code == 0
        waiter.assert_not_called()


class TestRmDryRun:
    """Tests for deltree rm --dry-run."""

    def test_dry_run_deletes_nothing(self, tree: Path) -> None:
        result = runner.invoke(app, ["rm", "--dry-run", str(tree)])

        assert result.exit_code == 0
        assert "Dry-run" in result.output
        assert "4 entries" in result.output
        assert (tree / "nested" / "b.txt").exists()

    def test_dry_run_missing_path(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["rm", "--dry-run", str(tmp_path / "missing")])

        assert result.exit_code == 0
        assert "Warning" in result.output

    def test_dry_run_does_not_call_delete(self, tree: Path) -> None:
        with patch("deltree.cli.commands.rm.delete_tree") as delete:
            runner.invoke(app, ["rm", "--dry-run", str(tree)])

        delete.assert_not_called()
