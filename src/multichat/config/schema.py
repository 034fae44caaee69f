"""
Pydantic configuration schema for MultiChat.

This module defines all configuration models with validation.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from multichat.platforms.models import PlatformType

# =============================================================================
# Messenger Configuration
# =============================================================================


class WhatsAppConfig(BaseModel):
    """WhatsApp messenger configuration."""

    model_config = ConfigDict(extra="allow")

    device_db: str = "device.db"  # SQLite device store, created on first run


class TeamsConfig(BaseModel):
    """Microsoft Teams messenger configuration."""

    model_config = ConfigDict(extra="allow")

    webhook_url: str = ""  # Default webhook; may also be given per call
    timeout: float = Field(default=30.0, gt=0)


class TwitterConfig(BaseModel):
    """Twitter/X messenger configuration.

    All four OAuth 1.0a credentials are required to build the messenger.
    Values may reference environment variables as ``${VAR_NAME}``.
    """

    model_config = ConfigDict(extra="allow")

    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""

    def missing_credentials(self) -> list[str]:
        """Names of the credentials that are not set."""
        return [
            name
            for name in ("api_key", "api_secret", "access_token", "access_token_secret")
            if not getattr(self, name)
        ]


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration. Logs always go to stderr.

    Levels: debug, info, warn/warning, error. Unknown levels fall back to info.
    """

    model_config = ConfigDict(extra="allow")

    level: str = "info"

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().lower()


# =============================================================================
# Root Configuration
# =============================================================================

SECRET_FIELDS = frozenset({"api_key", "api_secret", "access_token", "access_token_secret", "webhook_url"})


class Config(BaseModel):
    """
    Root configuration model for MultiChat.

    Configuration can be loaded from a YAML file, environment variables
    and CLI flags, merged in order of priority.
    """

    model_config = ConfigDict(extra="allow")

    messenger: PlatformType = PlatformType.WHATSAPP
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    teams: TeamsConfig = Field(default_factory=TeamsConfig)
    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("messenger", mode="before")
    @classmethod
    def _normalize_messenger(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def masked_dump(self) -> dict:
        """Dump the configuration with secrets replaced by ``***``."""
        return _mask(self.model_dump(mode="json"))


def _mask(value):
    if isinstance(value, dict):
        return {
            key: ("***" if key in SECRET_FIELDS and item else _mask(item))
            for key, item in value.items()
        }
    return value
