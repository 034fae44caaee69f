"""
Messenger Factory - Creates the configured messenger backend.

Each platform has one builder; adding a platform means adding a builder to
the map below.
"""

import logging
from collections.abc import Callable

from multichat.config.loader import ConfigurationError
from multichat.config.schema import Config
from multichat.platforms.models import PlatformType
from multichat.platforms.protocol import Messenger
from multichat.storage.paths import ensure_directory, expand_path

logger = logging.getLogger(__name__)


def _is_neonize_available() -> bool:
    """Check if neonize is installed."""
    try:
        import neonize  # noqa: F401

        return True
    except ImportError:
        return False


def _build_whatsapp(config: Config) -> Messenger:
    # neonize itself is only needed at connect time
    from multichat.platforms.adapters.whatsapp import WhatsAppMessenger

    device_db = expand_path(config.whatsapp.device_db)
    ensure_directory(device_db.parent)
    return WhatsAppMessenger(device_db=str(device_db))


def _build_teams(config: Config) -> Messenger:
    from multichat.platforms.adapters.teams import TeamsMessenger

    if not config.teams.webhook_url:
        logger.warning("No default Teams webhook URL configured - each call must provide one")
    return TeamsMessenger(webhook_url=config.teams.webhook_url, timeout=config.teams.timeout)


def _build_twitter(config: Config) -> Messenger:
    missing = config.twitter.missing_credentials()
    if missing:
        raise ConfigurationError(
            f"Twitter/X requires all API credentials; missing: {', '.join(missing)}"
        )
    from multichat.platforms.adapters.twitter import TwitterMessenger

    return TwitterMessenger(
        api_key=config.twitter.api_key,
        api_secret=config.twitter.api_secret,
        access_token=config.twitter.access_token,
        access_token_secret=config.twitter.access_token_secret,
    )


MESSENGER_BUILDERS: dict[PlatformType, Callable[[Config], Messenger]] = {
    PlatformType.WHATSAPP: _build_whatsapp,
    PlatformType.TEAMS: _build_teams,
    PlatformType.TWITTER: _build_twitter,
}


def create_messenger(config: Config) -> Messenger:
    """Create the messenger selected by the configuration.

    Args:
        config: Loaded configuration

    Returns:
        A messenger that is not yet connected

    Raises:
        ConfigurationError: If the backend is unknown or misconfigured
    """
    builder = MESSENGER_BUILDERS.get(config.messenger)
    if builder is None:
        raise ConfigurationError(f"Unknown messenger: {config.messenger}")

    logger.debug(f"Creating {config.messenger.value} messenger")
    return builder(config)


def get_available_messengers() -> list[str]:
    """Get list of messengers whose dependencies are installed."""
    messengers = [PlatformType.TEAMS.value, PlatformType.TWITTER.value]
    if _is_neonize_available():
        messengers.insert(0, PlatformType.WHATSAPP.value)
    return messengers
