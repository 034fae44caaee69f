"""
Dispatch server: serves one messenger's operations over MCP.

The server never chooses a backend and knows nothing about platforms. It
asks the messenger to register its operations, then relays each tool call to
the operation with the exact name, passing the raw argument bag through.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from multichat import __version__
from multichat.platforms.exceptions import UnknownOperationError
from multichat.platforms.protocol import Messenger
from multichat.tools.models import ToolCall, ToolResult
from multichat.tools.registry import OperationNamespace

logger = logging.getLogger(__name__)


class OperationFailed(Exception):
    """Carries a failure result's text out of the MCP tool handler.

    The MCP SDK turns an exception raised by a tool handler into an error
    result whose text is ``str(exception)``.
    """

    def __init__(self, result: ToolResult):
        super().__init__(result.output)
        self.result = result


class DispatchServer:
    """MCP server exposing the operations of exactly one messenger."""

    def __init__(self, messenger: Messenger, namespace: Optional[OperationNamespace] = None):
        """Initialize the dispatch server.

        Args:
            messenger: Connected (or connectable) backend to serve
            namespace: Namespace to register into (a fresh one by default)
        """
        self._messenger = messenger
        self._namespace = namespace if namespace is not None else OperationNamespace(messenger.name)
        self._server: Optional[Server] = None

    @property
    def messenger(self) -> Messenger:
        """The backend being served."""
        return self._messenger

    @property
    def namespace(self) -> OperationNamespace:
        """Operations registered by the backend."""
        return self._namespace

    @property
    def title(self) -> str:
        """Server name announced to clients."""
        return f"MultiChat MCP Server ({self._messenger.name})"

    @property
    def is_started(self) -> bool:
        """Whether operations have been registered."""
        return self._server is not None

    def start(self) -> Server:
        """Register the backend's operations and build the MCP server.

        Idempotent: operations are registered only on the first call.

        Raises:
            DuplicateOperationError: If the backend registers a name twice
        """
        if self._server is not None:
            return self._server

        self._messenger.register_operations(self._namespace)
        logger.info(
            f"Registered {len(self._namespace)} {self._messenger.name} operations: "
            f"{', '.join(self._namespace.list_operation_names())}"
        )

        self._server = self._build_server()
        return self._server

    async def invoke(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run one operation by exact name.

        Never raises: unknown names and operation failures come back as
        failure results.
        """
        operation = self._namespace.get(name)
        if operation is None:
            error = UnknownOperationError(name)
            logger.warning(f"Call to unknown operation: {name}")
            return ToolResult.failure(name, str(error), error.kind)

        if isinstance(arguments, Mapping):
            logger.debug(f"Invoking {ToolCall(name=name, arguments=dict(arguments))}")
        return await operation.invoke(arguments)

    async def serve_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        server = self.start()
        logger.info(f"Starting {self.title} v{__version__} on stdio")

        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    def _build_server(self) -> Server:
        server = Server(self.title, version=__version__)

        @server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            definitions = self._namespace.get_tool_definitions()
            return [types.Tool(**definition) for definition in definitions]

        # Operations decode their own arguments
        @server.call_tool(validate_input=False)
        async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
            return to_content(await self.invoke(name, arguments))

        return server


def to_content(result: ToolResult) -> list[types.TextContent]:
    """Convert a tool result into MCP text content.

    Raises:
        OperationFailed: For failure results, so the SDK flags them as errors
    """
    if result.is_error:
        raise OperationFailed(result)

    content = [types.TextContent(type="text", text=result.output)]
    content.extend(types.TextContent(type="text", text=note) for note in result.notes)
    return content
