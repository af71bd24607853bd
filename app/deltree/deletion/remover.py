"""Single-entry removal and error classification.

All decisions about whether a failure is worth retrying are made here;
the retry engine only acts on the resulting Outcome.
"""

import errno
import logging
from pathlib import Path

from deltree.filesystem.base import FileSystem
from deltree.filesystem.local import IS_WINDOWS
from deltree.filesystem.models import Outcome, RemovalResult

logger = logging.getLogger(__name__)

# Errnos reported for entries held open or directories not yet empty.
BUSY_ERRNOS: frozenset[int] = frozenset(
    {errno.EBUSY, errno.ETXTBSY, errno.ENOTEMPTY, errno.EEXIST}
)

# Windows error codes: sharing violation, lock violation, directory not empty.
BUSY_WINERRORS: frozenset[int] = frozenset({32, 33, 145})

# Access denied is what Windows reports for an entry in the delete-pending state.
WINERROR_ACCESS_DENIED = 5


def classify_error(exc: OSError) -> Outcome:
    """Map a removal error to an Outcome.

    Args:
        exc: Error raised by the filesystem.

    Returns:
        NOT_FOUND for a missing entry, BUSY for contention, FAILED otherwise.
    """
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return Outcome.NOT_FOUND

    winerror = getattr(exc, "winerror", None)
    if winerror is not None:
        if winerror in BUSY_WINERRORS:
            return Outcome.BUSY
        if IS_WINDOWS and winerror == WINERROR_ACCESS_DENIED:
            return Outcome.BUSY

    if exc.errno in BUSY_ERRNOS:
        return Outcome.BUSY
    return Outcome.FAILED


def remove_one(path: Path, fs: FileSystem) -> RemovalResult:
    """Attempt to remove one entry and classify what happened.

    Args:
        path: Entry to remove.
        fs: Filesystem to remove it from.

    Returns:
        RemovalResult describing the attempt. Never raises for OSError.
    """
    try:
        fs.remove(path)
    except OSError as e:
        outcome = classify_error(e)
        if outcome is Outcome.NOT_FOUND:
            return RemovalResult(path=path, outcome=outcome)
        logger.debug("Removing %s: %s (%s)", path, outcome.value, e)
        return RemovalResult(path=path, outcome=outcome, cause=e)

    return RemovalResult(path=path, outcome=Outcome.DELETED)
