"""CLI command modules."""

from multichat.cli.commands import config, serve, tools

__all__ = ["config", "serve", "tools"]
