"""
Path utilities for MultiChat.

Provides consistent path resolution for the configuration file and the
WhatsApp device store.
"""

import os
from pathlib import Path


def get_multichat_home() -> Path:
    """
    Get the MultiChat home directory.

    Resolution order:
    1. MULTICHAT_HOME environment variable
    2. Default: ~/.multichat

    Returns:
        Path to the MultiChat home directory.
    """
    env_home = os.environ.get("MULTICHAT_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".multichat"


def get_global_config_path() -> Path:
    """
    Get the path to the global configuration file.

    Returns:
        Path to ~/.multichat/config.yaml
    """
    return get_multichat_home() / "config.yaml"


def expand_path(path: str | Path) -> Path:
    """
    Expand a path string, handling ~ and environment variables.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded and resolved Path.
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)
    return Path(path).resolve()


def ensure_directory(path: Path, mode: int = 0o755) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path.
        mode: Permission mode for created directories.

    Returns:
        The path (for chaining).
    """
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path
