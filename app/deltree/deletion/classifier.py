"""Path normalization and classification without following links."""

import logging
import os
from pathlib import Path

from deltree.deletion.errors import InvalidPathError, PermanentDeletionError
from deltree.filesystem.base import FileSystem
from deltree.filesystem.models import PathKind

logger = logging.getLogger(__name__)


def normalize_path(path: str | os.PathLike[str] | None) -> Path:
    """Turn a caller-supplied path into an absolute, normalized Path.

    Normalization is purely lexical: symbolic links are not resolved, so a
    link and its target never compare equal.

    Args:
        path: Path given by the caller.

    Returns:
        Absolute Path.

    Raises:
        InvalidPathError: If the path is None, empty or not a text path.
    """
    if path is None:
        msg = "Path cannot be None"
        raise InvalidPathError(msg)
    try:
        raw = os.fspath(path)
    except TypeError as e:
        msg = f"Not a filesystem path: {path!r}"
        raise InvalidPathError(msg) from e
    if isinstance(raw, bytes):
        msg = f"Byte paths are not supported: {path!r}"
        raise InvalidPathError(msg)
    if not raw:
        msg = "Path cannot be empty"
        raise InvalidPathError(msg)
    return Path(os.path.abspath(raw))


def classify(path: Path, fs: FileSystem) -> PathKind:
    """Determine what kind of entry a path denotes.

    Symbolic links are reported as links whether or not their target
    exists; they are never dereferenced to a file or directory.

    Args:
        path: Path to classify.
        fs: Filesystem to query.

    Returns:
        PathKind of the entry.

    Raises:
        PermanentDeletionError: If the filesystem cannot be queried.
    """
    try:
        if fs.is_symlink(path):
            return PathKind.SYMLINK
        if not fs.exists(path):
            return PathKind.MISSING
        if fs.is_dir(path):
            return PathKind.DIRECTORY
        return PathKind.FILE
    except FileNotFoundError:
        return PathKind.MISSING
    except OSError as e:
        logger.debug("Cannot classify %s: %s", path, e)
        raise PermanentDeletionError(path, path, e) from e
