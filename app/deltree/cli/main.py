"""Main CLI application entry point.

Defines the deltree Typer application, its global options and log routing.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from deltree import __version__
from deltree.cli.commands import config, rm
from deltree.utils.formatting import err_console

app = typer.Typer(
    name="deltree",
    help="Delete directory trees, riding out files held open by other processes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"deltree version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route library logging to stderr through Rich.

    Args:
        verbose: Log everything down to DEBUG.
        quiet: Only log errors.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("deltree")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(level)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Print the deltree version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log retries and background handoffs to stderr.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
) -> None:
    """deltree - Delete directory trees, riding out busy files.

    Entries held open by other processes are retried until a timeout,
    after which deletion continues in the background.
    """
    configure_logging(verbose, quiet)


app.command(name="rm")(rm.remove)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
