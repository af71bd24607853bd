"""Filesystem domain models for tree deletion.

This module defines the core data structures describing what kind of
entry a path denotes and what happened when removing it was attempted.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class PathKind(str, Enum):
    """Kind of filesystem entry, determined without following links.

    Attributes:
        MISSING: Nothing exists at the path (not even a dangling link).
        SYMLINK: Symbolic link, regardless of whether its target exists.
        FILE: Regular file or any other non-directory entry.
        DIRECTORY: Real directory (never a link to one).
    """

    MISSING = "missing"
    SYMLINK = "symlink"
    FILE = "file"
    DIRECTORY = "directory"


class Outcome(str, Enum):
    """Outcome of a single removal attempt.

    Attributes:
        DELETED: The entry was removed.
        NOT_FOUND: The entry was already gone.
        BUSY: The entry is held by someone else; retrying may help.
        FAILED: The entry could not be removed and retrying cannot help.
    """

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Result of one attempt to remove one filesystem entry.

    Attributes:
        path: Path the removal was attempted on.
        outcome: Classified outcome of the attempt.
        cause: The error reported by the filesystem, None on success.
    """

    path: Path
    outcome: Outcome
    cause: OSError | None = None

    def __post_init__(self) -> None:
        """Validate that failures carry their cause."""
        if self.outcome in (Outcome.BUSY, Outcome.FAILED) and self.cause is None:
            msg = f"Outcome {self.outcome.value} requires a cause"
            raise ValueError(msg)
