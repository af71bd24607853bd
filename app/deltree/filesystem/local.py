"""Local filesystem implementation.

Backs the FileSystem interface with ``os.lstat``, ``os.scandir``,
``os.unlink``, ``os.rmdir`` and ``os.rename``. Links are never followed:
symbolic links and Windows junctions are treated as plain entries.
"""

import os
import stat
import sys
from pathlib import Path

from deltree.filesystem.base import FileSystem

IS_WINDOWS = sys.platform == "win32"


def _lstat(path: Path) -> os.stat_result | None:
    """Stat a path without following links, returning None if it is absent."""
    try:
        return os.lstat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None


class LocalFileSystem(FileSystem):
    """FileSystem operating on the local disk through the ``os`` module."""

    def exists(self, path: Path) -> bool:
        return _lstat(path) is not None

    def is_symlink(self, path: Path) -> bool:
        st = _lstat(path)
        if st is None:
            return False
        return stat.S_ISLNK(st.st_mode) or os.path.isjunction(path)

    def is_dir(self, path: Path) -> bool:
        st = _lstat(path)
        if st is None:
            return False
        return stat.S_ISDIR(st.st_mode) and not os.path.isjunction(path)

    def list_children(self, path: Path) -> list[Path]:
        with os.scandir(path) as entries:
            return [Path(entry.path) for entry in entries]

    def remove(self, path: Path) -> None:
        """Remove a file, link or empty directory.

        On Windows, links to directories and junctions must be removed with
        ``rmdir``; this never touches the link target.

        Args:
            path: Path to remove.

        Raises:
            FileNotFoundError: If nothing exists at the path.
            OSError: If the entry cannot be removed.
        """
        st = os.lstat(path)
        if stat.S_ISDIR(st.st_mode):
            os.rmdir(path)
        elif IS_WINDOWS and st.st_file_attributes & stat.FILE_ATTRIBUTE_DIRECTORY:
            os.rmdir(path)
        else:
            os.unlink(path)

    def rename(self, source: Path, target: Path) -> None:
        os.rename(source, target)
