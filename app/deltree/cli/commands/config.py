"""Settings commands.

Provides commands to show the effective retry settings, write a default
settings file, and print where the settings file lives.
"""

from typing import Annotated

import typer
from rich.table import Table

from deltree.core.paths import ensure_config_dir, get_settings_path
from deltree.core.settings import (
    SettingsError,
    get_default_settings,
    load_settings_or_default,
    save_settings,
)
from deltree.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and initialize retry settings.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective retry settings."""
    try:
        settings = load_settings_or_default()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    table = Table(
        title="Retry Settings",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="info", justify="right")
    for name, value in settings.model_dump().items():
        table.add_row(name, "unbounded" if value is None else str(value))
    console.print(table)

    path = get_settings_path()
    source = str(path) if path.exists() else "defaults (no settings file)"
    console.print(f"[muted]Source: {source}[/]")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing settings file."),
    ] = False,
) -> None:
    """Write a settings file with default values."""
    path = get_settings_path()
    if path.exists() and not force:
        print_info(f"Settings file already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        ensure_config_dir()
        saved = save_settings(get_default_settings(), path)
    except (RuntimeError, SettingsError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Wrote default settings to {saved}")


@app.command()
def path() -> None:
    """Print the settings file path."""
    typer.echo(str(get_settings_path()))
