"""deltree - recursive deletion that rides out busy files.

Deletes directory trees whose entries may be briefly held open by other
processes, retrying within a time budget and continuing in the
background when the budget runs out.
"""

from deltree.core.settings import RetrySettings
from deltree.deletion import (
    CancelToken,
    ContentionError,
    InvalidPathError,
    PermanentDeletionError,
    TreeNotFoundError,
    delete_path,
    delete_tree,
    delete_tree_in_background,
)

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ContentionError",
    "InvalidPathError",
    "PermanentDeletionError",
    "RetrySettings",
    "TreeNotFoundError",
    "__version__",
    "delete_path",
    "delete_tree",
    "delete_tree_in_background",
]
