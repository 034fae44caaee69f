"""Operation layer for MultiChat.

Backends describe what they can do as operations: a name, a description,
a pydantic argument model and an async handler. Operations are collected
in a per-backend namespace that the dispatch server serves over MCP.
"""

from multichat.tools.arguments import OperationArguments, PageArguments, decode_arguments
from multichat.tools.base import Operation
from multichat.tools.models import LimitedResult, ToolCall, ToolParameter, ToolResult
from multichat.tools.registry import OperationNamespace

__all__ = [
    "Operation",
    "OperationArguments",
    "OperationNamespace",
    "PageArguments",
    "LimitedResult",
    "ToolCall",
    "ToolParameter",
    "ToolResult",
    "decode_arguments",
]
