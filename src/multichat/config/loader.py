"""
Configuration loader for MultiChat.

Loads and merges configuration from multiple sources:
1. Default values
2. Config file (~/.multichat/config.yaml or an explicit path)
3. Environment variables (MULTICHAT_*)
4. Command line overrides
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from multichat.config.merger import deep_merge, set_nested_value
from multichat.config.schema import Config
from multichat.storage.paths import expand_path, get_global_config_path

ENV_PREFIX = "MULTICHAT_"

# Values written as ${VAR_NAME} are read from the environment.
_ENV_REFERENCE = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary (empty if the file does not exist).

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Invalid config in {path}: expected a mapping at the top level")
    return content


def apply_env_overrides(config: dict[str, Any], environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    MULTICHAT_<KEY>=<value>                  (top level, e.g. MULTICHAT_MESSENGER)
    MULTICHAT_<SECTION>__<KEY>=<value>       (e.g. MULTICHAT_TEAMS__WEBHOOK_URL)

    Values are kept as strings; the schema converts them.

    Args:
        config: Configuration dictionary to modify.
        environ: Environment to read (defaults to os.environ).

    Returns:
        Configuration with environment overrides applied.
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        # MULTICHAT_HOME locates the config file, it is not a setting
        if key == "MULTICHAT_HOME":
            continue

        config_key = key[len(ENV_PREFIX) :].lower().replace("__", ".")
        if not config_key:
            continue

        config = set_nested_value(config, config_key, value)

    return config


def resolve_env_references(value: Any, environ: Optional[dict[str, str]] = None) -> Any:
    """
    Replace ``${VAR_NAME}`` strings with the variable's value.

    Unset variables resolve to an empty string. Nested dicts and lists are
    walked recursively.
    """
    environ = os.environ if environ is None else environ

    if isinstance(value, dict):
        return {key: resolve_env_references(item, environ) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env_references(item, environ) for item in value]
    if isinstance(value, str):
        match = _ENV_REFERENCE.match(value.strip())
        if match:
            return environ.get(match.group(1), "")
    return value


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
    skip_env: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Loading order (later overrides earlier):
    1. Default values from Config model
    2. Config file (explicit path, or ~/.multichat/config.yaml)
    3. Environment variables (MULTICHAT_*)
    4. Overrides (from CLI flags; None values are ignored)

    Args:
        config_path: Explicit config file. Must exist when given.
        overrides: Nested dictionary of values taking precedence over everything.
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated Config object.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    # 1. Start with defaults
    config_dict = Config().model_dump(mode="json")

    # 2. Load config file
    if config_path is not None:
        path = expand_path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        config_dict = deep_merge(config_dict, load_yaml_file(path))
    else:
        global_path = get_global_config_path()
        if global_path.exists():
            config_dict = deep_merge(config_dict, load_yaml_file(global_path))

    # 3. Apply environment variables
    if not skip_env:
        config_dict = apply_env_overrides(config_dict)

    # 4. Apply CLI overrides
    if overrides:
        config_dict = deep_merge(config_dict, _drop_unset(overrides))

    config_dict = resolve_env_references(config_dict)

    # 5. Validate and return
    try:
        return Config.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def _drop_unset(values: dict[str, Any]) -> dict[str, Any]:
    result = {}
    for key, value in values.items():
        if isinstance(value, dict):
            value = _drop_unset(value)
            if not value:
                continue
        elif value is None:
            continue
        result[key] = value
    return result


# Singleton for cached config
_cached_config: Config | None = None


def get_config(reload: bool = False) -> Config:
    """
    Get the global configuration instance.

    Uses a cached instance. Use reload=True to force refresh.

    Args:
        reload: Force reload configuration from disk.

    Returns:
        Config instance.
    """
    global _cached_config

    if _cached_config is None or reload:
        _cached_config = load_config()

    return _cached_config


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    global _cached_config
    _cached_config = None
