"""Operation: a named, schema-described unit of backend functionality."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional

from multichat.platforms.exceptions import (
    FailureKind,
    MessengerError,
    OperationCancelledError,
    classify_error,
)
from multichat.tools.arguments import OperationArguments, decode_arguments, parameters_from_model
from multichat.tools.models import LimitedResult, ToolParameter, ToolResult

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


class Operation:
    """A backend operation exposed through the dispatch layer.

    Each operation defines:
    - Name and description (for the client to understand when to use it)
    - An argument model, from which the input schema is derived
    - An async handler receiving the decoded arguments

    Operations are created once at registration time and are immutable
    afterwards. ``invoke`` is the failure boundary: whatever the handler
    raises comes back as a failure result.
    """

    __slots__ = ("_name", "_description", "_arguments", "_handler", "_parameters")

    def __init__(
        self,
        name: str,
        description: str,
        arguments: type[OperationArguments],
        handler: Handler,
    ):
        """Initialize the operation.

        Args:
            name: Unique name within the backend namespace
            description: Human-readable description
            arguments: Pydantic model describing the parameters
            handler: Coroutine function called with the decoded arguments

        Raises:
            ValueError: If the definition is invalid
        """
        self._name = name
        self._description = description
        self._arguments = arguments
        self._handler = handler
        self._parameters = tuple(parameters_from_model(arguments))
        self._validate_definition()

    @property
    def name(self) -> str:
        """Operation name (unique per backend)."""
        return self._name

    @property
    def description(self) -> str:
        """Description of what the operation does."""
        return self._description

    @property
    def arguments(self) -> type[OperationArguments]:
        """Argument model the raw bag is decoded into."""
        return self._arguments

    @property
    def parameters(self) -> list[ToolParameter]:
        """List of operation parameters."""
        return list(self._parameters)

    def get_input_schema(self) -> dict[str, Any]:
        """Get JSON schema for operation input.

        Returns:
            JSON schema describing operation parameters
        """
        properties = {}
        required = []

        for param in self._parameters:
            param_schema: dict[str, Any] = {
                "type": param.type,
                "description": param.description,
            }

            if param.default is not None:
                param_schema["default"] = param.default

            properties[param.name] = param_schema

            if param.required:
                required.append(param.name)

        schema: dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            schema["required"] = required
        return schema

    def get_tool_definition(self) -> dict[str, Any]:
        """Get the complete tool definition in MCP format."""
        return {
            "name": self._name,
            "description": self._description,
            "inputSchema": self.get_input_schema(),
        }

    async def invoke(self, raw_arguments: Optional[Mapping[str, Any]]) -> ToolResult:
        """Decode arguments, run the handler and encode the outcome.

        Never raises: argument, state, identifier and platform errors,
        cancellation and unexpected exceptions all become failure results.

        Args:
            raw_arguments: Argument bag as received from the protocol

        Returns:
            ToolResult with either the JSON payload or the failure text
        """
        try:
            arguments = decode_arguments(self._arguments, raw_arguments)
            payload = await self._handler(arguments)
        except MessengerError as e:
            logger.info(f"Operation {self._name} failed ({e.kind.value}): {e}")
            return ToolResult.failure(self._name, str(e), e.kind, e.details)
        except asyncio.CancelledError:
            logger.warning(f"Operation {self._name} cancelled")
            error = OperationCancelledError("operation cancelled before completion")
            return ToolResult.failure(self._name, str(error), error.kind)
        except Exception as e:
            kind = classify_error(e)
            if kind is FailureKind.INTERNAL:
                logger.error(f"Operation {self._name} raised unexpectedly: {e}", exc_info=True)
            else:
                logger.error(f"Operation {self._name} platform call failed: {e}")
            return ToolResult.failure(self._name, str(e) or type(e).__name__, kind)

        if isinstance(payload, LimitedResult):
            logger.warning(f"Operation {self._name}: {payload.note}")
            return ToolResult.success(self._name, payload.payload, notes=[payload.note])

        return ToolResult.success(self._name, payload)

    def _validate_definition(self) -> None:
        """Validate operation definition is correct.

        Raises:
            ValueError: If operation definition is invalid
        """
        if not self._name:
            raise ValueError("Operation name cannot be empty")

        if not self._description:
            raise ValueError("Operation description cannot be empty")

        if not callable(self._handler):
            raise ValueError(f"Operation {self._name} handler is not callable")

    def __str__(self) -> str:
        """String representation."""
        return f"Operation({self._name})"

    def __repr__(self) -> str:
        """Representation."""
        params = ", ".join(p.name for p in self._parameters)
        return f"<Operation name={self._name} params=[{params}]>"
