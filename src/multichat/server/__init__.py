"""MCP dispatch server for MultiChat."""

from multichat.server.dispatch import DispatchServer, OperationFailed, to_content

__all__ = ["DispatchServer", "OperationFailed", "to_content"]
