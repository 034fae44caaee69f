"""Data models for the operation layer."""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field

from multichat.platforms.exceptions import FailureKind


class ToolParameter(BaseModel):
    """Defines a parameter of an operation's input schema."""

    name: str
    type: str  # "string", "integer", "number", "boolean", "array", "object"
    description: str
    required: bool = True
    default: Optional[Any] = None


class ToolCall(BaseModel):
    """Represents one invocation received from the protocol client."""

    name: str  # Operation name
    arguments: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name}({', '.join(f'{k}={v!r}' for k, v in self.arguments.items())})"


class LimitedResult(BaseModel):
    """A successful payload that is knowingly incomplete.

    Handlers return this when the backend structurally cannot answer in full
    (e.g. no message history); the note travels with the result.
    """

    payload: Any
    note: str


def encode_payload(payload: Any) -> str:
    """Encode a handler payload as JSON text.

    Pydantic models are dumped in JSON mode without unset optional fields;
    plain strings pass through unchanged.
    """
    if isinstance(payload, str):
        return payload
    return json.dumps(_to_jsonable(payload), ensure_ascii=False)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


class ToolResult(BaseModel):
    """Represents the result of one operation invocation.

    Exactly one of success or failure: ``is_error`` selects which, ``output``
    always holds the text sent back to the client.
    """

    operation: str
    output: str
    is_error: bool = False
    error_kind: Optional[FailureKind] = None
    notes: list[str] = Field(default_factory=list)

    @classmethod
    def success(cls, operation: str, payload: Any, notes: Optional[list[str]] = None) -> "ToolResult":
        """Build a success result from a handler payload."""
        return cls(operation=operation, output=encode_payload(payload), notes=notes or [])

    @classmethod
    def failure(
        cls,
        operation: str,
        message: str,
        kind: FailureKind,
        details: Any = None,
    ) -> "ToolResult":
        """Build a failure result.

        Args:
            operation: Operation name
            message: Human-readable failure reason
            kind: Failure classification
            details: Optional record of the attempted side effect, appended as JSON
        """
        output = f"{operation} failed [{kind.value}]: {message}"
        if details is not None:
            output += f"\nDetails: {encode_payload(details)}"
        return cls(operation=operation, output=output, is_error=True, error_kind=kind)

    def __str__(self) -> str:
        """String representation."""
        if self.is_error:
            return f"Error: {self.output}"
        return self.output[:200] + ("..." if len(self.output) > 200 else "")
