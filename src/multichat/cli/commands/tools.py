"""
multichat tools - List the operations a messenger exposes.

Usage:
    multichat tools
    multichat tools --messenger teams
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table
from rich.text import Text

from multichat.cli.output import console, print_error
from multichat.config import ConfigurationError, load_config
from multichat.platforms.factory import create_messenger
from multichat.server.dispatch import DispatchServer


def list_tools(
    messenger: Annotated[
        str | None,
        typer.Option(
            "--messenger",
            "-m",
            help="Messenger to describe: whatsapp, teams or twitter.",
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
    """List a messenger's MCP tools without connecting to it."""
    try:
        config = load_config(config_path=config_path, overrides={"messenger": messenger})
        server = DispatchServer(create_messenger(config))
    except (ConfigurationError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    server.start()
    operations = server.namespace.list_operations()

    table = Table(title=server.title)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Parameters", style="magenta")
    table.add_column("Description")

    for operation in operations:
        params = ", ".join(
            param.name if param.required else f"[{param.name}]" for param in operation.parameters
        )
        table.add_row(operation.name, Text(params), operation.description)

    console.print(table)
    console.print(f"\n[dim]Total: {len(operations)} tool(s)[/dim]")
