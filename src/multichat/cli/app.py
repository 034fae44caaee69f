"""
Main Typer application for the multichat CLI.

This module defines the root CLI application and registers all commands.
"""

from typing import Annotated

import typer

from multichat import __version__
from multichat.cli.commands import config, serve, tools
from multichat.cli.output import print_info

# Create the main Typer app
app = typer.Typer(
    name="multichat",
    help="Multi-messenger MCP server for WhatsApp, Microsoft Teams and Twitter/X.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"multichat version {__version__}")
        raise typer.Exit()


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold blue]multichat[/bold blue] - Multi-messenger MCP server

    Serves one messenger (WhatsApp, Teams or Twitter/X) as Model Context
    Protocol tools over stdio.

    Use [bold]multichat serve --messenger <name>[/bold] to start the server.
    """


# Register commands
app.command("serve")(serve.serve)
app.command("tools")(tools.list_tools)
app.add_typer(config.app, name="config")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
