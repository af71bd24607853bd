"""Public deletion entry points.

``delete_tree`` removes a whole tree; ``delete_path`` removes a single
entry. Both tolerate busy entries for up to ``timeout`` seconds and then
raise ContentionError, leaving a background continuation to finish the
job. Without a timeout they wait as long as it takes.
"""

from __future__ import annotations

import errno
import logging
import os
from collections.abc import Iterator
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from deltree.core.settings import RetrySettings
from deltree.deletion.background import hand_off
from deltree.deletion.classifier import classify, normalize_path
from deltree.deletion.errors import ContentionError, PermanentDeletionError
from deltree.deletion.retry import RetryBudget, TreeRemoval, delete_with_retry
from deltree.deletion.walker import walk
from deltree.filesystem.local import LocalFileSystem
from deltree.filesystem.models import PathKind

if TYPE_CHECKING:
    from deltree.deletion.cancel import CancelToken
    from deltree.deletion.retry import RetryObserver, Walker
    from deltree.filesystem.base import FileSystem

logger = logging.getLogger(__name__)

Timeout = float | timedelta | None


def make_budget(timeout: Timeout) -> RetryBudget:
    """Create the retry budget for a timeout given in seconds or as a timedelta.

    Args:
        timeout: Seconds, a timedelta, or None for no limit.

    Returns:
        A RetryBudget starting now.

    Raises:
        ValueError: If the timeout is negative.
    """
    if timeout is None:
        return RetryBudget.unbounded()
    if isinstance(timeout, timedelta):
        return RetryBudget(timeout.total_seconds())
    return RetryBudget(float(timeout))


def delete_tree(
    path: str | os.PathLike[str] | None,
    timeout: Timeout = None,
    on_retry: RetryObserver | None = None,
    *,
    cancel: CancelToken | None = None,
    fs: FileSystem | None = None,
    settings: RetrySettings | None = None,
) -> None:
    """Delete a file, symbolic link or directory tree.

    Directory contents are removed before the directory itself. Symbolic
    links are removed as links; their targets are never touched.

    With a timeout, busy entries are retried for at most that long; if
    any are still busy afterwards the deletion continues in a background
    thread and ContentionError is raised. A timeout of 0 makes a single
    attempt. Without a timeout the call blocks until the tree is gone,
    unless ``cancel`` is signalled, which hands off to the background at
    once.

    Args:
        path: Path to delete.
        timeout: Retry budget in seconds or as a timedelta; None for no limit.
        on_retry: Called once before every retry, including background ones.
        cancel: Cancellation token, read but never cleared.
        fs: Filesystem to operate on. Defaults to the local filesystem.
        settings: Retry timing. Defaults to RetrySettings().

    Raises:
        InvalidPathError: If path is None or empty.
        TreeNotFoundError: If nothing exists at path.
        PermanentDeletionError: If an entry cannot be deleted for a non-busy reason.
        ContentionError: If entries stayed busy past the timeout or the call
            was cancelled; deletion continues in the background.
        ValueError: If the timeout is negative.
    """
    _delete(path, timeout, on_retry, cancel=cancel, fs=fs, settings=settings, walker=walk)


def delete_path(
    path: str | os.PathLike[str] | None,
    timeout: Timeout = None,
    on_retry: RetryObserver | None = None,
    *,
    cancel: CancelToken | None = None,
    fs: FileSystem | None = None,
    settings: RetrySettings | None = None,
) -> None:
    """Delete a single file, symbolic link or empty directory.

    Behaves like delete_tree but never recurses: a directory that is not
    empty at call time is rejected. Children that appear later are
    treated as contention, and a background continuation removes them
    along with the directory.

    Args:
        path: Path to delete.
        timeout: Retry budget in seconds or as a timedelta; None for no limit.
        on_retry: Called once before every retry, including background ones.
        cancel: Cancellation token, read but never cleared.
        fs: Filesystem to operate on. Defaults to the local filesystem.
        settings: Retry timing. Defaults to RetrySettings().

    Raises:
        InvalidPathError: If path is None or empty.
        TreeNotFoundError: If nothing exists at path.
        PermanentDeletionError: If the directory is not empty, or the entry
            cannot be deleted for a non-busy reason.
        ContentionError: If the entry stayed busy past the timeout or the call
            was cancelled; deletion continues in the background.
        ValueError: If the timeout is negative.
    """
    fs = fs or LocalFileSystem()
    root = normalize_path(path)
    if classify(root, fs) is PathKind.DIRECTORY:
        try:
            children = fs.list_children(root)
        except FileNotFoundError:
            children = []
        except OSError as e:
            raise PermanentDeletionError(root, root, e) from e
        if children:
            cause = OSError(errno.ENOTEMPTY, os.strerror(errno.ENOTEMPTY), str(root))
            raise PermanentDeletionError(root, root, cause)

    _delete(
        root,
        timeout,
        on_retry,
        cancel=cancel,
        fs=fs,
        settings=settings,
        walker=_entry_only,
        detach=False,
    )


def _entry_only(root: Path, fs: FileSystem) -> Iterator[Path]:
    if classify(root, fs) is not PathKind.MISSING:
        yield root


def _delete(
    path: str | os.PathLike[str] | None,
    timeout: Timeout,
    on_retry: RetryObserver | None,
    *,
    cancel: CancelToken | None,
    fs: FileSystem | None,
    settings: RetrySettings | None,
    walker: Walker,
    detach: bool = True,
) -> None:
    budget = make_budget(timeout)
    fs = fs or LocalFileSystem()
    settings = settings or RetrySettings()

    try:
        delete_with_retry(
            path,
            budget,
            on_retry,
            fs=fs,
            settings=settings,
            cancel=cancel,
            walker=walker,
            detach=detach,
        )
    except ContentionError as e:
        logger.info("Handing deletion of %s to a background continuation", e.path)
        hand_off(TreeRemoval(e.path, fs, location=e.location), on_retry, settings)
        raise
