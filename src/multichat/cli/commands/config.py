"""
multichat config - Configuration inspection commands.

Usage:
    multichat config show
    multichat config show teams
    multichat config path
"""

from pathlib import Path
from typing import Annotated

import typer

from multichat.cli.output import console, print_error, print_json
from multichat.config import ConfigurationError, load_config
from multichat.config.merger import get_nested_value
from multichat.storage.paths import get_global_config_path

app = typer.Typer(
    name="config",
    help="Configuration inspection.",
)


@app.command()
def show(
    section: Annotated[
        str | None,
        typer.Argument(
            help="Config section to show (e.g., 'teams', 'whatsapp.device_db').",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file to read instead of ~/.multichat/config.yaml.",
        ),
    ] = None,
) -> None:
    """Show the effective configuration as JSON, with secrets masked."""
    try:
        config = load_config(config_path=config_path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    data = config.masked_dump()
    if section:
        data = get_nested_value(data, section)
        if data is None:
            print_error(f"Unknown config section: {section}")
            raise typer.Exit(1)

    print_json(data)


@app.command()
def path() -> None:
    """Show the path of the global config file."""
    console.print(str(get_global_config_path()))
