"""Post-order traversal of a directory tree.

The walk is a generator so that every deletion pass sees the tree as it
is at that moment; entries can appear or vanish between passes while
another process holds part of the tree. It keeps its own stack of open
directories, so the depth of a tree is limited by the filesystem only.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from deltree.deletion.classifier import classify
from deltree.filesystem.base import FileSystem
from deltree.filesystem.models import PathKind

logger = logging.getLogger(__name__)


def _sorted_children(directory: Path, fs: FileSystem) -> Iterator[Path]:
    try:
        children = fs.list_children(directory)
    except FileNotFoundError:
        # Vanished since it was classified; removing it reports not-found.
        logger.debug("Directory vanished during walk: %s", directory)
        children = []
    return iter(sorted(children))


def walk(root: Path, fs: FileSystem) -> Iterator[Path]:
    """Yield every entry of a tree in deletion order.

    Children come before their parent and siblings are ordered by name.
    Symbolic links are yielded as leaves and never descended into. A root
    that does not exist yields nothing.

    Args:
        root: Root of the tree to walk.
        fs: Filesystem to walk.

    Yields:
        Paths in post-order.

    Raises:
        PermanentDeletionError: If an entry cannot be classified.
        OSError: If a directory exists but cannot be listed.
    """
    kind = classify(root, fs)
    if kind is PathKind.MISSING:
        return
    if kind is not PathKind.DIRECTORY:
        yield root
        return

    stack = [(root, _sorted_children(root, fs))]
    while stack:
        directory, children = stack[-1]
        for child in children:
            kind = classify(child, fs)
            if kind is PathKind.DIRECTORY:
                stack.append((child, _sorted_children(child, fs)))
                break
            if kind is not PathKind.MISSING:
                yield child
        else:
            stack.pop()
            yield directory
