"""CLI commands for deltree.

This package contains all subcommand implementations.
"""

from deltree.cli.commands import config, rm

__all__ = ["config", "rm"]
