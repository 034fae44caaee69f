"""
multichat serve - Run the MCP server for one messenger.

Usage:
    multichat serve
    multichat serve --messenger teams --webhook https://...
    multichat serve --messenger twitter --twitter-api-key ... --twitter-api-secret ...
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from multichat.cli.output import configure_logging, print_error, print_info
from multichat.config import ConfigurationError, load_config
from multichat.platforms.exceptions import ConnectError
from multichat.platforms.factory import create_messenger, get_available_messengers
from multichat.platforms.protocol import Messenger
from multichat.server.dispatch import DispatchServer

logger = logging.getLogger(__name__)


def build_overrides(
    messenger: Optional[str] = None,
    device: Optional[str] = None,
    webhook: Optional[str] = None,
    twitter_api_key: Optional[str] = None,
    twitter_api_secret: Optional[str] = None,
    twitter_token: Optional[str] = None,
    twitter_token_secret: Optional[str] = None,
    log_level: Optional[str] = None,
) -> dict[str, Any]:
    """Map command line flags onto the configuration layout.

    Flags that were not given stay None and are ignored by the loader.
    """
    return {
        "messenger": messenger,
        "whatsapp": {"device_db": device},
        "teams": {"webhook_url": webhook},
        "twitter": {
            "api_key": twitter_api_key,
            "api_secret": twitter_api_secret,
            "access_token": twitter_token,
            "access_token_secret": twitter_token_secret,
        },
        "logging": {"level": log_level},
    }


async def run_server(messenger: Messenger, server: Optional[DispatchServer] = None) -> None:
    """Connect, serve MCP over stdio and always disconnect.

    SIGTERM cancels the serving task, which unwinds through the same
    cleanup as Ctrl+C.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError):
        # Not supported on this platform or loop
        pass

    try:
        await messenger.connect()
        server = server or DispatchServer(messenger)
        await server.serve_stdio()
    finally:
        await messenger.disconnect()
        try:
            loop.remove_signal_handler(signal.SIGTERM)
        except (NotImplementedError, RuntimeError):
            pass


def serve(
    messenger: Annotated[
        str | None,
        typer.Option(
            "--messenger",
            "-m",
            help="Messenger to serve: whatsapp, teams or twitter.",
        ),
    ] = None,
    device: Annotated[
        str | None,
        typer.Option("--device", help="WhatsApp device store (SQLite file)."),
    ] = None,
    webhook: Annotated[
        str | None,
        typer.Option("--webhook", help="Default Teams webhook URL."),
    ] = None,
    twitter_api_key: Annotated[
        str | None,
        typer.Option("--twitter-api-key", help="Twitter/X API key."),
    ] = None,
    twitter_api_secret: Annotated[
        str | None,
        typer.Option("--twitter-api-secret", help="Twitter/X API secret."),
    ] = None,
    twitter_token: Annotated[
        str | None,
        typer.Option("--twitter-token", help="Twitter/X access token."),
    ] = None,
    twitter_token_secret: Annotated[
        str | None,
        typer.Option("--twitter-token-secret", help="Twitter/X access token secret."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Log level: debug, info, warn, error."),
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
    """Serve one messenger's operations over MCP on stdin/stdout."""
    overrides = build_overrides(
        messenger=messenger,
        device=device,
        webhook=webhook,
        twitter_api_key=twitter_api_key,
        twitter_api_secret=twitter_api_secret,
        twitter_token=twitter_token,
        twitter_token_secret=twitter_token_secret,
        log_level=log_level,
    )

    try:
        config = load_config(config_path=config_path, overrides=overrides)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    configure_logging(config.logging.level)
    logger.info(f"Starting MultiChat with {config.messenger.value} messenger")

    name = config.messenger.value
    if name not in get_available_messengers():
        print_error(f"The {name} messenger is not installed: pip install 'multichat[{name}]'")
        raise typer.Exit(1)

    try:
        backend = create_messenger(config)
    except (ConfigurationError, ValueError) as e:
        print_error(f"Failed to create messenger: {e}")
        raise typer.Exit(1)

    try:
        asyncio.run(run_server(backend))
    except ConnectError as e:
        print_error(f"Connection failed: {e}")
        raise typer.Exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        print_info("Shutting down")
