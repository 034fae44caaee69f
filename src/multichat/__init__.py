"""
MultiChat - Multi-messenger MCP server

Exposes WhatsApp, Microsoft Teams and Twitter/X through one Model Context
Protocol tool surface. One messenger backend is active per process.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("multichat")
except PackageNotFoundError:
    __version__ = "1.0.0"

__all__ = [
    "__version__",
]
