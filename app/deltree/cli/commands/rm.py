"""Remove command implementation.

Deletes files and directory trees, retrying entries held by other
processes and continuing in the background when the timeout expires.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from deltree.core.settings import RetrySettings, SettingsError, load_settings_or_default
from deltree.deletion.api import delete_tree
from deltree.deletion.background import wait_for_background
from deltree.deletion.classifier import classify, normalize_path
from deltree.deletion.errors import (
    ContentionError,
    DeletionError,
    InvalidPathError,
    TreeNotFoundError,
)
from deltree.deletion.walker import walk
from deltree.filesystem.local import LocalFileSystem
from deltree.utils.formatting import (
    console,
    create_entry_table,
    format_kind,
    print_error,
    print_info,
    print_success,
    print_warning,
)


def remove(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files or directory trees to delete."),
    ],
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            min=0,
            help="Seconds to retry busy entries before continuing in the background.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted, in order."),
    ] = False,
    wait: Annotated[
        bool,
        typer.Option("--wait", "-w", help="Wait for background deletions to finish."),
    ] = False,
) -> None:
    """Delete files and directory trees, tolerating busy entries."""
    try:
        settings = load_settings_or_default()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if timeout is None:
        timeout = settings.default_timeout

    if dry_run:
        _print_deletion_plan(paths)
        return

    failures = 0
    handed_off: list[Path] = []
    for path in paths:
        if not _delete_one(path, timeout, settings, handed_off):
            failures += 1

    if handed_off and wait:
        print_info(f"Waiting for {len(handed_off)} background deletion(s)...")
        wait_for_background()
        for location in handed_off:
            if os.path.lexists(location):
                print_error(f"Background deletion did not finish: {location}")
                failures += 1

    if failures:
        raise typer.Exit(code=1)


def _delete_one(
    path: Path, timeout: float | None, settings: RetrySettings, handed_off: list[Path]
) -> bool:
    """Delete one path and report the result.

    On contention, the location of the entries left to the background is
    appended to ``handed_off``.

    Returns:
        False if the path could not be deleted.
    """
    retries = 0

    def count_retry() -> None:
        nonlocal retries
        retries += 1

    try:
        delete_tree(path, timeout, count_retry, settings=settings)
    except ContentionError as e:
        print_warning(
            f"{path}: {len(e.busy_paths)} entries still busy after {e.attempts} attempt(s); "
            "deletion continues in the background"
        )
        handed_off.append(e.location)
        return True
    except TreeNotFoundError:
        print_error(f"Path does not exist: {path}")
        return False
    except (DeletionError, InvalidPathError) as e:
        print_error(str(e))
        return False

    suffix = f" after {retries} retries" if retries else ""
    print_success(f"Deleted {path}{suffix}")
    return True


def _print_deletion_plan(paths: list[Path]) -> None:
    """Print the entries that would be deleted, in deletion order."""
    fs = LocalFileSystem()
    table = create_entry_table("Deletion Order (dry-run)")
    step = 0
    for raw in paths:
        try:
            root = normalize_path(raw)
            entries = [(entry, classify(entry, fs)) for entry in walk(root, fs)]
        except (DeletionError, InvalidPathError) as e:
            print_error(str(e))
            continue
        if not entries:
            print_warning(f"Path does not exist: {raw}")
            continue
        for entry, kind in entries:
            step += 1
            table.add_row(str(step), format_kind(kind), str(entry))
    if step:
        console.print(table)
        print_info(f"Dry-run: {step} entries would be deleted")
