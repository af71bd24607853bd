"""Time-bounded retry of tree deletion.

A deletion proceeds in passes. Each pass walks the tree afresh and tries
to remove every entry in post-order. Passes are repeated while entries
are busy and the budget allows; anything that is neither removed nor
busy ends the deletion at once.

A directory tree is renamed to a hidden sibling before its first entry is
removed. If that rename fails because something inside is busy, the pass
removes nothing, so a caller that gives up finds its tree as it was.
"""

from __future__ import annotations

import logging
import math
import os
import time
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from deltree.deletion.classifier import classify, normalize_path
from deltree.deletion.errors import ContentionError, PermanentDeletionError, TreeNotFoundError
from deltree.deletion.remover import classify_error, remove_one
from deltree.deletion.walker import walk
from deltree.filesystem.models import Outcome, PathKind, RemovalResult

if TYPE_CHECKING:
    from deltree.core.settings import RetrySettings
    from deltree.deletion.cancel import CancelToken
    from deltree.filesystem.base import FileSystem

logger = logging.getLogger(__name__)

# Called once before every retry; never for the first attempt.
RetryObserver = Callable[[], None]

# Produces the entries of one pass in removal order.
Walker = Callable[[Path, "FileSystem"], Iterator[Path]]


@dataclass(frozen=True, slots=True)
class RetryBudget:
    """Wall-clock time a synchronous deletion may spend retrying.

    Attributes:
        timeout: Budget in seconds; ``math.inf`` for no limit, 0 for a single attempt.
        started: ``time.monotonic()`` instant the budget started at.
    """

    timeout: float
    started: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        """Validate the timeout."""
        if math.isnan(self.timeout) or self.timeout < 0:
            msg = f"Timeout must be a non-negative number of seconds, got {self.timeout}"
            raise ValueError(msg)

    @classmethod
    def unbounded(cls) -> RetryBudget:
        """Create a budget that never expires."""
        return cls(math.inf)

    @property
    def is_unbounded(self) -> bool:
        """Check if the budget never expires."""
        return math.isinf(self.timeout)

    def remaining(self) -> float:
        """Seconds left in the budget, never negative."""
        if self.is_unbounded:
            return math.inf
        return max(0.0, self.timeout - (time.monotonic() - self.started))

    @property
    def expired(self) -> bool:
        """Check if no time is left."""
        return self.remaining() <= 0.0


@dataclass(frozen=True, slots=True)
class PassResult:
    """Result of one walk-and-remove pass over a tree.

    Attributes:
        removed: Number of entries this pass removed.
        busy: Entries that were busy and remain in place.
    """

    removed: int
    busy: tuple[RemovalResult, ...] = ()

    @property
    def complete(self) -> bool:
        """Check if nothing was left behind."""
        return not self.busy

    @property
    def busy_paths(self) -> list[Path]:
        """Paths of the entries left behind."""
        return [result.path for result in self.busy]


def attempt_pass(root: Path, fs: FileSystem, walker: Walker = walk) -> PassResult:
    """Walk the tree once and try to remove every entry.

    Busy entries are skipped so the rest of the tree still makes progress;
    their parents will report busy as well since they cannot be emptied.
    The tree is changed in place; see TreeRemoval for passes that leave a
    tree with busy entries untouched.

    Args:
        root: Root of the tree.
        fs: Filesystem to operate on.
        walker: Function producing the entries in removal order.

    Returns:
        PassResult for the pass.

    Raises:
        PermanentDeletionError: On the first entry that fails for a non-busy reason.
    """
    removed = 0
    busy: list[RemovalResult] = []
    failure: RemovalResult | None = None

    try:
        for path in walker(root, fs):
            result = remove_one(path, fs)
            if result.outcome is Outcome.DELETED:
                removed += 1
            elif result.outcome is Outcome.BUSY:
                busy.append(result)
            elif result.outcome is Outcome.FAILED:
                failure = result
                break
    except PermanentDeletionError:
        raise
    except OSError as e:
        # A directory could not be listed.
        listed = Path(e.filename) if e.filename else root
        outcome = classify_error(e)
        if outcome is Outcome.BUSY:
            busy.append(RemovalResult(path=listed, outcome=outcome, cause=e))
        elif outcome is Outcome.FAILED:
            failure = RemovalResult(path=listed, outcome=outcome, cause=e)

    if failure is not None and failure.cause is not None:
        logger.warning("Cannot delete %s: %s", failure.path, failure.cause)
        raise PermanentDeletionError(root, failure.path, failure.cause) from failure.cause

    return PassResult(removed=removed, busy=tuple(busy))


class TreeRemoval:
    """Deletion of one tree, carried over several passes.

    While the root is still where the caller named it, a pass first
    renames it to a hidden sibling and only then removes entries. A pass
    that meets a busy entry therefore either leaves the tree untouched or
    has already taken all of it out of view. Once moved, later passes
    remove what is left of the moved tree in place.

    Roots that are not directories are removed in place; removing a single
    entry is all or nothing already.

    Attributes:
        root: Path the caller asked to delete.
        location: Where the remaining entries are.
    """

    def __init__(
        self,
        root: Path,
        fs: FileSystem,
        walker: Walker = walk,
        *,
        detach: bool = True,
        location: Path | None = None,
    ) -> None:
        self.root = root
        self.location = location if location is not None else root
        self._fs = fs
        self._walker = walker
        self._detach = detach

    @property
    def detached(self) -> bool:
        """Check if the root has been moved aside."""
        return self.location != self.root

    def exists(self) -> bool:
        """Check if anything is left to delete.

        Raises:
            OSError: If the filesystem cannot be queried.
        """
        return self._fs.exists(self.location)

    def continuation(self) -> TreeRemoval:
        """Create a recursive removal of whatever is left of this one."""
        return TreeRemoval(self.root, self._fs, location=self.location)

    def attempt(self) -> PassResult:
        """Make one pass over whatever is left of the tree.

        Returns:
            PassResult for the pass. A root that could not be moved aside
            is reported as the only busy entry.

        Raises:
            PermanentDeletionError: If the root cannot be moved aside, or an
                entry fails for a non-busy reason. A moved tree is put back
                under its root first when possible.
        """
        if self._detach and not self.detached:
            blocked = self._move_aside()
            if blocked is not None:
                return blocked
        try:
            return attempt_pass(self.location, self._fs, self._walker)
        except PermanentDeletionError as e:
            if not self.detached:
                raise
            cause = e.__cause__ if isinstance(e.__cause__, OSError) else e
            raise self._put_back(e.failed_path, cause) from cause

    def _move_aside(self) -> PassResult | None:
        if self.root.parent == self.root:
            return None
        if classify(self.root, self._fs) is not PathKind.DIRECTORY:
            return None
        staging = self.root.with_name(
            f".{self.root.name[:200]}.deltree-{uuid.uuid4().hex[:12]}"
        )
        try:
            self._fs.rename(self.root, staging)
        except OSError as e:
            outcome = classify_error(e)
            if outcome is Outcome.NOT_FOUND:
                return PassResult(removed=0)
            if outcome is Outcome.FAILED:
                logger.warning("Cannot move %s aside: %s", self.root, e)
                raise PermanentDeletionError(self.root, self.root, e) from e
            return PassResult(
                removed=0, busy=(RemovalResult(path=self.root, outcome=outcome, cause=e),)
            )
        logger.debug("Moved %s aside to %s", self.root, staging)
        self.location = staging
        return None

    def _put_back(self, failed_path: Path, cause: OSError) -> PermanentDeletionError:
        staging = self.location
        try:
            recreated = self._fs.exists(self.root)
            if not recreated:
                self._fs.rename(staging, self.root)
        except OSError as e:
            logger.warning("Cannot move %s back to %s: %s", staging, self.root, e)
            return PermanentDeletionError(self.root, failed_path, cause)
        if recreated:
            logger.warning("Cannot move %s back, %s was recreated", staging, self.root)
            return PermanentDeletionError(self.root, failed_path, cause)

        logger.debug("Moved %s back to %s", staging, self.root)
        self.location = self.root
        failed_path = self.root / failed_path.relative_to(staging)
        return PermanentDeletionError(self.root, failed_path, cause)


def _pause(seconds: float, cancel: CancelToken | None) -> None:
    """Sleep between attempts, waking early if cancelled."""
    if seconds <= 0:
        return
    if cancel is None:
        time.sleep(seconds)
    else:
        cancel.wait(seconds)


def delete_with_retry(
    root: str | os.PathLike[str] | None,
    budget: RetryBudget,
    on_retry: RetryObserver | None = None,
    *,
    fs: FileSystem,
    settings: RetrySettings,
    cancel: CancelToken | None = None,
    walker: Walker = walk,
    detach: bool = True,
) -> int:
    """Delete a tree, retrying busy entries until the budget runs out.

    The root's existence is checked once up front; entries that vanish
    later, concurrently with this call, count as deleted. A zero budget
    makes exactly one pass without sleeping or calling ``on_retry``. While
    anything under a directory root is busy the tree stays where it is; see
    TreeRemoval.

    Args:
        root: Root of the tree to delete.
        budget: Time this call may spend retrying.
        on_retry: Called once before every retry.
        fs: Filesystem to operate on.
        settings: Retry timing.
        cancel: If set between attempts, the wait is abandoned early. Never cleared here.
        walker: Function producing the entries of each pass in removal order.
        detach: Move a directory root aside before removing its entries.

    Returns:
        Number of passes made.

    Raises:
        InvalidPathError: If root is None or empty.
        TreeNotFoundError: If root does not exist.
        PermanentDeletionError: If an entry fails for a non-busy reason.
        ContentionError: If entries are still busy when the budget expires or
            the call is cancelled.
    """
    path = normalize_path(root)
    if classify(path, fs) is PathKind.MISSING:
        raise TreeNotFoundError(path)

    removal = TreeRemoval(path, fs, walker, detach=detach)
    attempts = 0
    while True:
        attempts += 1
        result = removal.attempt()
        if result.complete:
            logger.debug("Deleted %s in %d attempt(s)", path, attempts)
            return attempts

        last_cause = result.busy[0].cause
        if budget.expired:
            logger.info(
                "Retry budget for %s exhausted after %d attempt(s), %d entries busy",
                path,
                attempts,
                len(result.busy),
            )
            raise ContentionError(
                path,
                result.busy_paths,
                attempts,
                last_cause=last_cause,
                location=removal.location,
            )
        if cancel is not None and cancel.is_cancelled:
            logger.info("Deletion of %s cancelled after %d attempt(s)", path, attempts)
            raise ContentionError(
                path,
                result.busy_paths,
                attempts,
                cancelled=True,
                last_cause=last_cause,
                location=removal.location,
            )

        logger.debug("%d entries under %s busy, retrying", len(result.busy), path)
        if on_retry is not None:
            on_retry()
        _pause(min(settings.retry_interval, budget.remaining()), cancel)
