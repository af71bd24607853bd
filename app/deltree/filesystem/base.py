"""Abstract base class for the filesystem collaborator.

This module defines the FileSystem interface the deletion engine uses to
inspect and remove entries. None of the inspection methods follow
symbolic links.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class FileSystem(ABC):
    """Abstract base class for filesystems the deletion engine can work on.

    Implementations raise ``OSError`` (or a subclass) for every failure;
    the engine classifies those errors itself.

    Example:
        >>> fs = LocalFileSystem()
        >>> if fs.exists(path) and fs.is_dir(path):
        ...     for child in fs.list_children(path):
        ...         print(child)
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Check if anything exists at the path, without following links.

        A dangling symbolic link exists.

        Args:
            path: Path to check.

        Returns:
            True if an entry is present at the path.

        Raises:
            OSError: If the filesystem cannot be queried.
        """

    @abstractmethod
    def is_symlink(self, path: Path) -> bool:
        """Check if the path is a symbolic link.

        Args:
            path: Path to check.

        Returns:
            True if the entry is a symbolic link, False otherwise or if missing.

        Raises:
            OSError: If the filesystem cannot be queried.
        """

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check if the path is a real directory, without following links.

        Args:
            path: Path to check.

        Returns:
            True only for directories; links to directories return False.

        Raises:
            OSError: If the filesystem cannot be queried.
        """

    @abstractmethod
    def list_children(self, path: Path) -> list[Path]:
        """List the direct children of a directory.

        Args:
            path: Directory to list.

        Returns:
            Paths of the direct children, in no particular order.

        Raises:
            FileNotFoundError: If the directory no longer exists.
            OSError: If the directory cannot be listed.
        """

    @abstractmethod
    def remove(self, path: Path) -> None:
        """Remove a single entry: a file, a symbolic link or an empty directory.

        Args:
            path: Path to remove.

        Raises:
            FileNotFoundError: If the entry does not exist.
            OSError: If the entry cannot be removed.
        """

    @abstractmethod
    def rename(self, source: Path, target: Path) -> None:
        """Rename an entry within the same directory.

        Args:
            source: Entry to rename.
            target: New path; nothing may exist there yet.

        Raises:
            FileNotFoundError: If the source does not exist.
            OSError: If the entry cannot be renamed.
        """
