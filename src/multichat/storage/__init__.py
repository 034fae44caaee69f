"""Storage utilities for MultiChat."""

from multichat.storage.paths import (
    ensure_directory,
    expand_path,
    get_global_config_path,
    get_multichat_home,
)

__all__ = [
    "ensure_directory",
    "expand_path",
    "get_global_config_path",
    "get_multichat_home",
]
