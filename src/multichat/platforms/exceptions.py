"""
Messenger exceptions for MultiChat.

Every failure an operation handler can report is one of these classes. The
operation boundary turns them into protocol failure results, so none of them
ever reaches the transport as an uncaught error.
"""

from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Classification of operation failures, reported with every failure result."""

    INVALID_ARGUMENTS = "invalid_arguments"
    INVALID_DATE = "invalid_date"
    NOT_CONNECTED = "not_connected"
    INVALID_IDENTIFIER = "invalid_identifier"
    PLATFORM = "platform_error"
    CONNECTION = "connection_error"
    CANCELLED = "cancelled"
    UNKNOWN_OPERATION = "unknown_operation"
    INTERNAL = "internal"


class MessengerError(Exception):
    """Base exception for messenger errors."""

    kind: FailureKind = FailureKind.INTERNAL

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.platform = platform
        self.details = details


class InvalidArgumentsError(MessengerError):
    """Arguments are missing, mistyped or out of range."""

    kind = FailureKind.INVALID_ARGUMENTS


class InvalidDateError(InvalidArgumentsError):
    """A date-like argument is not an RFC 3339 timestamp."""

    kind = FailureKind.INVALID_DATE

    def __init__(self, field: str, value: str, reason: str):
        super().__init__(f"invalid {field} date {value!r}: {reason}")
        self.field = field
        self.value = value


class NotConnectedError(MessengerError):
    """Operation attempted while the messenger is not connected."""

    kind = FailureKind.NOT_CONNECTED

    def __init__(self, platform: str):
        super().__init__(f"not connected to {platform}", platform)


class InvalidIdentifierError(MessengerError):
    """An address cannot be parsed into the platform's addressing scheme."""

    kind = FailureKind.INVALID_IDENTIFIER


class PlatformError(MessengerError):
    """The underlying platform call failed (network, auth, rate limit, rejection)."""

    kind = FailureKind.PLATFORM


class ConnectError(MessengerError):
    """Establishing the platform session failed."""

    kind = FailureKind.CONNECTION


class OperationCancelledError(MessengerError):
    """The invocation was cancelled while the platform call was in flight."""

    kind = FailureKind.CANCELLED


class UnknownOperationError(MessengerError):
    """No operation with the requested name is registered."""

    kind = FailureKind.UNKNOWN_OPERATION

    def __init__(self, name: str):
        super().__init__(f"unknown operation: {name}")
        self.name = name


class DuplicateOperationError(ValueError):
    """Two operations of the same backend share a name."""


def classify_error(error: Exception) -> FailureKind:
    """
    Classify an exception into a failure kind.

    SDK exceptions are imported lazily so this module stays importable
    without the optional platform clients.

    Args:
        error: The exception to classify.

    Returns:
        The failure kind classification.
    """
    if isinstance(error, MessengerError):
        return error.kind

    try:
        import httpx

        if isinstance(error, (httpx.HTTPError, httpx.InvalidURL)):
            return FailureKind.PLATFORM
    except ImportError:
        pass

    try:
        from tweepy.errors import TweepyException

        if isinstance(error, TweepyException):
            return FailureKind.PLATFORM
    except ImportError:
        pass

    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return FailureKind.PLATFORM

    return FailureKind.INTERNAL
