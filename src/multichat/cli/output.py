"""
Output formatting utilities for the CLI.

Provides consistent output formatting across all CLI commands. While the
server runs, stdout carries the MCP stream, so status messages and logs
always go to stderr.
"""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Command output (tables, JSON)
console = Console()

# Status messages and logs
err_console = Console(stderr=True)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info") -> int:
    """Route all logging to stderr through rich.

    Unknown level names fall back to info.

    Returns:
        The numeric level applied
    """
    numeric_level = LOG_LEVELS.get(level.lower(), logging.INFO)
    handler = RichHandler(
        console=err_console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # Request lines from the HTTP client are noise at info level
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    return numeric_level


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]✗[/red] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    err_console.print(f"[blue]i[/blue] {escape(message)}")


def print_json(data: Any) -> None:
    """Print data as indented JSON."""
    console.print_json(json.dumps(data))
