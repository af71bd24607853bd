"""Tree deletion engine.

This module provides recursive deletion that tolerates entries being
briefly held by other processes: post-order walking that never follows
symbolic links, time-bounded retries, and background continuation.
"""

from deltree.deletion.api import delete_path, delete_tree, make_budget
from deltree.deletion.background import (
    BackgroundTask,
    active_background_tasks,
    delete_tree_in_background,
    hand_off,
    wait_for_background,
)
from deltree.deletion.cancel import CancelToken
from deltree.deletion.classifier import classify, normalize_path
from deltree.deletion.errors import (
    ContentionError,
    DeletionError,
    InvalidPathError,
    PermanentDeletionError,
    TreeNotFoundError,
)
from deltree.deletion.remover import classify_error, remove_one
from deltree.deletion.retry import (
    PassResult,
    RetryBudget,
    TreeRemoval,
    attempt_pass,
    delete_with_retry,
)
from deltree.deletion.walker import walk

__all__ = [
    "BackgroundTask",
    "CancelToken",
    "ContentionError",
    "DeletionError",
    "InvalidPathError",
    "PassResult",
    "PermanentDeletionError",
    "RetryBudget",
    "TreeNotFoundError",
    "TreeRemoval",
    "active_background_tasks",
    "attempt_pass",
    "classify",
    "classify_error",
    "delete_path",
    "delete_tree",
    "delete_tree_in_background",
    "delete_with_retry",
    "hand_off",
    "make_budget",
    "normalize_path",
    "remove_one",
    "wait_for_background",
    "walk",
]
