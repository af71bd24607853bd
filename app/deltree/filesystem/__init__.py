"""Filesystem collaborator module.

This module provides the FileSystem interface used by the deletion
engine, its local implementation, and the entry and outcome models.
"""

from deltree.filesystem.base import FileSystem
from deltree.filesystem.local import IS_WINDOWS, LocalFileSystem
from deltree.filesystem.models import Outcome, PathKind, RemovalResult

__all__ = [
    "IS_WINDOWS",
    "FileSystem",
    "LocalFileSystem",
    "Outcome",
    "PathKind",
    "RemovalResult",
]
