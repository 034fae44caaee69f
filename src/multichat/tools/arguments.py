"""
Argument decoding for operations.

Arguments arrive from the protocol as an untyped key-value bag. Every
operation declares one pydantic model for its parameters; a single
decode-and-default function turns the bag into that model, so handlers
never look at raw dictionaries.
"""

import re
import types
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from multichat.platforms.exceptions import InvalidArgumentsError, InvalidDateError
from multichat.tools.models import ToolParameter

DEFAULT_LIMIT = 20

_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)

ArgsT = TypeVar("ArgsT", bound="OperationArguments")

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
}


class OperationArguments(BaseModel):
    """Base model for operation parameters.

    Strict: a string is never coerced into an integer and vice versa.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


class PageArguments(OperationArguments):
    """Pagination parameters shared by the listing operations."""

    limit: int = Field(default=DEFAULT_LIMIT, ge=0, description="Maximum number of items to return")
    page: int = Field(default=0, ge=0, description="Page number for pagination (zero-based)")

    @field_validator("limit")
    @classmethod
    def _default_zero_limit(cls, value: int) -> int:
        # A limit of 0 means "not set".
        return value or DEFAULT_LIMIT


def decode_arguments(model: type[ArgsT], raw: Optional[Mapping[str, Any]]) -> ArgsT:
    """
    Decode a raw argument bag into an operation's parameter model.

    Declared defaults are applied for omitted optional parameters.

    Args:
        model: The operation's argument model.
        raw: Arguments as received from the protocol (may be None).

    Returns:
        Validated argument model.

    Raises:
        InvalidArgumentsError: If a required field is missing or a value has the wrong type.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise InvalidArgumentsError(
            f"invalid arguments: expected an object, got {type(raw).__name__}"
        )

    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidArgumentsError(f"invalid arguments: {_describe_errors(e)}") from e


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def parse_timestamp(field: str, value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp argument.

    Args:
        field: Parameter name, used in the error message.
        value: Timestamp string such as ``2024-05-01T12:00:00Z``; empty means unset.

    Returns:
        Timezone-aware datetime, or None when the value is empty.

    Raises:
        InvalidDateError: If the value is not an RFC 3339 timestamp.
    """
    if not value:
        return None

    match = _RFC3339_RE.match(value.strip())
    if match is None:
        raise InvalidDateError(field, value, "expected YYYY-MM-DDTHH:MM:SS[.frac] with Z or +HH:MM")

    base, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    # fromisoformat only takes 3 or 6 fractional digits on older interpreters
    fraction = f".{fraction[1:7].ljust(6, '0')}" if fraction else ""

    try:
        return datetime.fromisoformat(f"{base[:10]}T{base[11:]}{fraction}{offset}")
    except ValueError as e:
        raise InvalidDateError(field, value, str(e)) from e


def parameters_from_model(model: type[OperationArguments]) -> list[ToolParameter]:
    """Derive the input-schema parameter list from an argument model."""
    parameters = []
    for name, field in model.model_fields.items():
        required = field.is_required()
        parameters.append(
            ToolParameter(
                name=name,
                type=_json_type(field.annotation),
                description=field.description or "",
                required=required,
                default=None if required else field.default,
            )
        )
    return parameters


def _json_type(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _json_type(members[0]) if members else "string"
    if origin is not None:
        annotation = origin
    return _JSON_TYPES.get(annotation, "string")
