"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules, including a
filesystem double that reports chosen paths as busy, the way Windows
reports files held open by another process.
"""

import errno
import os
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest
from deltree.core.settings import RetrySettings
from deltree.deletion.background import active_background_tasks, wait_for_background
from deltree.filesystem.local import LocalFileSystem


class HoldingFileSystem(LocalFileSystem):
    """LocalFileSystem whose ``remove`` fails with EBUSY for held paths.

    Renaming a held path, or a directory containing one, fails the same
    way, as it does on Windows while a file below is open.

    Attributes:
        remove_calls: Every path ``remove`` was called with, in order.
        rename_calls: Every source path ``rename`` was called with, in order.
    """

    def __init__(self) -> None:
        self._held: set[Path] = set()
        self._lock = threading.Lock()
        self.remove_calls: list[Path] = []
        self.rename_calls: list[Path] = []

    def hold(self, path: Path) -> None:
        """Make removal of ``path`` fail as busy until released."""
        with self._lock:
            self._held.add(Path(os.path.abspath(path)))

    def release(self, path: Path | None = None) -> None:
        """Release one held path, or all of them."""
        with self._lock:
            if path is None:
                self._held.clear()
            else:
                self._held.discard(Path(os.path.abspath(path)))

    def is_held(self, path: Path) -> bool:
        with self._lock:
            return Path(path) in self._held

    def holds_below(self, path: Path) -> bool:
        """Check if ``path`` or anything under it is held."""
        path = Path(path)
        with self._lock:
            return any(held == path or path in held.parents for held in self._held)

    def remove(self, path: Path) -> None:
        self.remove_calls.append(Path(path))
        if self.is_held(path):
            raise OSError(errno.EBUSY, os.strerror(errno.EBUSY), str(path))
        super().remove(path)

    def rename(self, source: Path, target: Path) -> None:
        self.rename_calls.append(Path(source))
        if self.holds_below(source):
            raise OSError(errno.EBUSY, os.strerror(errno.EBUSY), str(source))
        super().rename(source, target)


@dataclass(frozen=True)
class SampleTree:
    """Paths of the sample tree built by the ``sample_tree`` fixture."""

    root: Path
    top: Path
    top_file: Path
    empty_dir: Path
    common: Path
    target_file: Path
    target_dir: Path

    def child_file(self, directory: Path) -> Path:
        return directory / "child.txt"

    @staticmethod
    def walked(path: Path) -> list[Path]:
        """List ``path`` and everything below it, without following links."""
        entries = [path]
        if path.is_dir() and not path.is_symlink():
            for child in sorted(path.iterdir()):
                entries.extend(SampleTree.walked(child))
        return entries


def _symlinks_supported(base: Path) -> bool:
    link = base / ".symlink-check"
    try:
        link.symlink_to(base)
    except (OSError, NotImplementedError):
        return False
    link.unlink()
    return True


@pytest.fixture
def holding_fs() -> Iterator[HoldingFileSystem]:
    """A HoldingFileSystem that releases everything on teardown."""
    fs = HoldingFileSystem()
    yield fs
    fs.release()


@pytest.fixture
def fast_settings() -> RetrySettings:
    """Retry settings with short pauses so tests run quickly."""
    return RetrySettings(
        retry_interval=0.005,
        background_initial_delay=0.01,
        background_backoff=1.5,
        background_max_delay=0.05,
    )


@pytest.fixture
def sample_tree(tmp_path: Path) -> SampleTree:
    """Build a small tree with nested directories, files and a sibling tree.

    Layout::

        root/
          top/
            child.txt
            a/
              child.txt
              b/
                child.txt
            empty/
          top.txt
          empty_dir/
          common/
            child.txt
            nested/
              child.txt
          target.txt
          target_dir/
            child.txt
    """
    root = tmp_path / "root"
    top = root / "top"
    (top / "a" / "b").mkdir(parents=True)
    (top / "empty").mkdir()
    for directory in (top, top / "a", top / "a" / "b"):
        (directory / "child.txt").write_text("data")

    common = root / "common"
    (common / "nested").mkdir(parents=True)
    (common / "child.txt").write_text("data")
    (common / "nested" / "child.txt").write_text("data")

    top_file = root / "top.txt"
    top_file.write_text("data")
    empty_dir = root / "empty_dir"
    empty_dir.mkdir()

    target_file = root / "target.txt"
    target_file.write_text("target")
    target_dir = root / "target_dir"
    target_dir.mkdir()
    (target_dir / "child.txt").write_text("data")

    return SampleTree(
        root=root,
        top=top,
        top_file=top_file,
        empty_dir=empty_dir,
        common=common,
        target_file=target_file,
        target_dir=target_dir,
    )


@pytest.fixture
def symlinks(tmp_path: Path) -> None:
    """Skip the test if symbolic links cannot be created here."""
    if not _symlinks_supported(tmp_path):
        pytest.skip("Symbolic links cannot be created in current environment")


@pytest.fixture(autouse=True)
def _drain_background() -> Iterator[None]:
    """Fail a test that leaves a background deletion running."""
    yield
    finished = wait_for_background(timeout=5.0)
    assert finished, f"Background deletions still running: {active_background_tasks()}"


@pytest.fixture
def deep_tree(tmp_path: Path) -> Iterator[Path]:
    """A chain of 1100 nested directories ending in ``leaf.txt``.

    Built and torn down one level at a time, since ``os.makedirs`` and
    ``shutil.rmtree`` recurse per level.
    """
    root = tmp_path / "deep"
    root.mkdir()
    current = root
    for _ in range(1100):
        current = current / "d"
        current.mkdir()
    leaf = current / "leaf.txt"
    leaf.write_text("data")
    yield root

    leaf.unlink(missing_ok=True)
    while current != tmp_path:
        if current.exists():
            current.rmdir()
        current = current.parent
