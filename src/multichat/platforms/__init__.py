"""Messenger backends for MultiChat.

This package provides the messenger protocol and its implementations for
WhatsApp, Microsoft Teams and Twitter/X.

Architecture:
    Entrypoint → Messenger Factory → Messenger Adapter → Operation Namespace → Dispatch Server

Key Components:
    - Messenger: Abstract protocol for platform implementations
      (``multichat.platforms.protocol``)
    - create_messenger: Builds the configured backend
      (``multichat.platforms.factory``)
    - JID: WhatsApp addressing (``multichat.platforms.jid``)
"""

from multichat.platforms.exceptions import (
    ConnectError,
    FailureKind,
    InvalidArgumentsError,
    InvalidDateError,
    InvalidIdentifierError,
    MessengerError,
    NotConnectedError,
    PlatformError,
)
from multichat.platforms.models import (
    Chat,
    ConnectionState,
    Contact,
    Message,
    MessageFilter,
    PlatformType,
)

__all__ = [
    "Chat",
    "ConnectError",
    "ConnectionState",
    "Contact",
    "FailureKind",
    "InvalidArgumentsError",
    "InvalidDateError",
    "InvalidIdentifierError",
    "Message",
    "MessageFilter",
    "MessengerError",
    "NotConnectedError",
    "PlatformError",
    "PlatformType",
]
