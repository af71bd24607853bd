"""Exceptions raised by tree deletion.

Filesystem-side failures derive from OSError so callers can keep handling
them the way they handle any other I/O error; invalid arguments derive
from ValueError.
"""

import errno
from collections.abc import Sequence
from pathlib import Path


class InvalidPathError(ValueError):
    """Raised when the path to delete is None or empty."""


class DeletionError(OSError):
    """Base exception for failures while deleting a path.

    Attributes:
        path: Root path of the deletion that failed.
    """

    def __init__(self, code: int, message: str, path: Path) -> None:
        super().__init__(code, message, str(path))
        self.path = path


class TreeNotFoundError(DeletionError, FileNotFoundError):
    """Raised when the path to delete does not exist at call time."""

    def __init__(self, path: Path) -> None:
        super().__init__(errno.ENOENT, "Path does not exist", path)


class PermanentDeletionError(DeletionError):
    """Raised when an entry fails to delete for a reason retrying cannot fix.

    The original error is chained as ``__cause__`` and its errno is kept.

    Attributes:
        failed_path: The entry that could not be removed.
    """

    def __init__(self, path: Path, failed_path: Path, cause: OSError) -> None:
        code = cause.errno if cause.errno is not None else errno.EIO
        reason = cause.strerror or str(cause)
        super().__init__(code, f"Cannot delete {failed_path}: {reason}", path)
        self.failed_path = failed_path


class ContentionError(DeletionError):
    """Raised when entries stay busy until the retry budget is spent.

    Deletion may still complete later: the bounded entry points hand the
    remaining work to a background continuation before raising.

    Attributes:
        busy_paths: Entries that were still busy on the last attempt.
        attempts: Number of walk-and-remove passes made.
        cancelled: True if the wait was abandoned because of cancellation.
        last_cause: Error reported for the first busy entry on the last attempt.
        location: Where the remaining entries are: the root itself, or the
            hidden sibling the root was moved to before its entries were removed.
    """

    def __init__(
        self,
        path: Path,
        busy_paths: Sequence[Path],
        attempts: int,
        *,
        cancelled: bool = False,
        last_cause: OSError | None = None,
        location: Path | None = None,
    ) -> None:
        reason = "cancelled while busy" if cancelled else "still busy after retry budget"
        message = f"{len(busy_paths)} entries {reason} ({attempts} attempts)"
        super().__init__(errno.EBUSY, message, path)
        self.busy_paths = tuple(busy_paths)
        self.attempts = attempts
        self.cancelled = cancelled
        self.last_cause = last_cause
        self.location = location if location is not None else path
