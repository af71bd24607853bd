"""Background continuation of tree deletions.

When a synchronous deletion gives up on busy entries, the remaining work
is handed to a daemon thread that keeps retrying with a growing pause
until the tree is gone. The thread communicates with nobody: callers
observe progress only through the filesystem.

A continuation always deletes recursively, whichever entry point handed
it over, since its only goal is that nothing is left. At most one
continuation runs per location. The registry of running continuations is
the only in-memory state shared between threads.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING

from deltree.core.settings import RetrySettings
from deltree.deletion.classifier import classify, normalize_path
from deltree.deletion.errors import PermanentDeletionError
from deltree.deletion.retry import TreeRemoval
from deltree.filesystem.local import LocalFileSystem
from deltree.filesystem.models import PathKind

if TYPE_CHECKING:
    from deltree.deletion.cancel import CancelToken
    from deltree.deletion.retry import RetryObserver
    from deltree.filesystem.base import FileSystem

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_active: dict[Path, BackgroundTask] = {}


class BackgroundTask:
    """A background continuation deleting one tree.

    The task ends when nothing is left to delete, when an entry fails for
    a non-busy reason, or when the process exits.

    Attributes:
        path: Normalized root being deleted.
    """

    def __init__(
        self,
        removal: TreeRemoval,
        on_retry: RetryObserver | None,
        settings: RetrySettings,
    ) -> None:
        self.path = removal.root
        self._key = removal.location
        self._removal = removal
        self._on_retry = on_retry
        self._settings = settings
        self._attempts = 0
        self._thread = threading.Thread(
            target=self._run,
            name=f"deltree-bg:{self.path}",
            daemon=True,
        )

    @property
    def location(self) -> Path:
        """Where the remaining entries are: the root, or the sibling it was moved to."""
        return self._removal.location

    @property
    def attempts(self) -> int:
        """Number of passes made by this task so far."""
        return self._attempts

    def start(self) -> None:
        """Start the worker thread."""
        self._thread.start()

    def is_alive(self) -> bool:
        """Check if the worker thread is still running."""
        return self._thread.is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the task to finish.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely.

        Returns:
            True if the task has finished.
        """
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        delay = self._settings.background_initial_delay
        try:
            while True:
                time.sleep(delay)
                try:
                    if not self._removal.exists():
                        logger.info("Background deletion of %s complete", self.path)
                        return
                except OSError as e:
                    logger.warning("Background deletion of %s abandoned: %s", self.path, e)
                    return

                self._notify_retry()
                self._attempts += 1
                try:
                    result = self._removal.attempt()
                except PermanentDeletionError as e:
                    logger.warning("Background deletion of %s abandoned: %s", self.path, e)
                    return
                if result.complete:
                    logger.info(
                        "Background deletion of %s complete after %d attempt(s)",
                        self.path,
                        self._attempts,
                    )
                    return
                delay = self._settings.next_background_delay(delay)
        finally:
            _unregister(self)

    def _notify_retry(self) -> None:
        if self._on_retry is None:
            return
        try:
            self._on_retry()
        except Exception:
            logger.exception("Retry observer failed for background deletion of %s", self.path)

    def __repr__(self) -> str:
        state = "running" if self.is_alive() else "finished"
        return f"BackgroundTask(path={str(self.path)!r}, {state}, attempts={self._attempts})"


def _unregister(task: BackgroundTask) -> None:
    with _registry_lock:
        if _active.get(task._key) is task:
            del _active[task._key]


def hand_off(
    removal: TreeRemoval,
    on_retry: RetryObserver | None,
    settings: RetrySettings,
) -> BackgroundTask:
    """Continue a deletion in the background without attempting it first.

    What is left is deleted recursively, even if ``removal`` was not. If a
    continuation is already running for the same location, that one is
    returned instead.

    Args:
        removal: The deletion to continue.
        on_retry: Called before every background retry.
        settings: Retry timing.

    Returns:
        The task continuing the deletion.
    """
    continuation = removal.continuation()
    with _registry_lock:
        existing = _active.get(continuation.location)
        if existing is not None and existing.is_alive():
            logger.debug("Background deletion of %s already running", removal.root)
            return existing
        task = BackgroundTask(continuation, on_retry, settings)
        _active[continuation.location] = task
        task.start()

    logger.info("Continuing deletion of %s in the background", removal.root)
    return task


def delete_tree_in_background(
    root: str | os.PathLike[str] | None,
    on_retry: RetryObserver | None = None,
    *,
    fs: FileSystem | None = None,
    settings: RetrySettings | None = None,
    cancel: CancelToken | None = None,
) -> BackgroundTask | None:
    """Delete a tree in a background thread and return at once.

    If ``cancel`` is already set, one pass is made on the calling thread
    first, so a cancelled caller still sees prompt progress; this happens
    even when a continuation for the same root is already running.
    Otherwise nothing is attempted before the daemon thread takes over and
    keeps retrying without a time limit. Failures are logged, never
    raised: once this returns there is no channel back to the caller.

    The caller's ``cancel`` token is only read, never cleared.

    Args:
        root: Root of the tree to delete.
        on_retry: Called before every background retry.
        fs: Filesystem to operate on. Defaults to the local filesystem.
        settings: Retry timing. Defaults to RetrySettings().
        cancel: The caller's cancellation token, if any.

    Returns:
        The task continuing the deletion (possibly one already running for
        the same root), or None if nothing was left to delete.

    Raises:
        InvalidPathError: If root is None or empty.
    """
    path = normalize_path(root)
    fs = fs or LocalFileSystem()
    settings = settings or RetrySettings()
    removal = TreeRemoval(path, fs)

    try:
        if cancel is not None and cancel.is_cancelled:
            logger.debug("Caller cancelled, attempting %s once before handing off", path)
            if removal.attempt().complete:
                logger.debug("Deleted %s without background retry", path)
                return None
        elif classify(path, fs) is PathKind.MISSING:
            return None
    except PermanentDeletionError as e:
        logger.warning("Deletion of %s abandoned: %s", path, e)
        return None

    return hand_off(removal, on_retry, settings)


def active_background_tasks() -> list[BackgroundTask]:
    """List the background continuations that are still running."""
    with _registry_lock:
        tasks = list(_active.values())
    return [task for task in tasks if task.is_alive()]


def wait_for_background(timeout: float | None = None) -> bool:
    """Wait for all running background continuations to finish.

    Args:
        timeout: Maximum seconds to wait in total; None waits indefinitely.

    Returns:
        True if no continuation is running anymore.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    for task in active_background_tasks():
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        task.wait(remaining)
    return not active_background_tasks()
