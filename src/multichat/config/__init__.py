"""Configuration loading for MultiChat."""

from multichat.config.loader import ConfigurationError, get_config, load_config
from multichat.config.schema import Config

__all__ = [
    "Config",
    "ConfigurationError",
    "get_config",
    "load_config",
]
