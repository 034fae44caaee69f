"""Data models for multi-platform messaging."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PlatformType(str, Enum):
    """Supported messaging platforms."""

    WHATSAPP = "whatsapp"
    TEAMS = "teams"
    TWITTER = "twitter"


class ConnectionState(str, Enum):
    """Lifecycle of a messenger connection.

    disconnected -> connecting -> connected -> disconnected. A failed
    connect goes straight back to disconnected.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Contact(BaseModel):
    """Represents a contact on a specific platform."""

    jid: str  # Platform-specific address
    phone_number: str  # Normalized phone number or handle
    name: str = ""

    def __str__(self) -> str:
        """String representation for logging."""
        return f"{self.name or self.phone_number} <{self.jid}>"


class Message(BaseModel):
    """Represents a chat message."""

    id: str
    chat_jid: str
    sender: str
    text: str = ""
    timestamp: datetime
    is_from_me: bool = False
    media_type: Optional[str] = None

    def __str__(self) -> str:
        """String representation for logging."""
        return f"[{self.chat_jid}] {self.sender}: {self.text[:50]}"


class Chat(BaseModel):
    """Represents a conversation."""

    jid: str
    name: str = ""
    is_group: bool = False
    last_message: Optional[Message] = None


class MessageFilter(BaseModel):
    """Criteria for listing messages.

    All supplied predicates must hold. ``page`` and ``limit`` select the
    half-open window ``[page * limit, page * limit + limit)``.
    """

    after: Optional[datetime] = None
    before: Optional[datetime] = None
    sender_jid: Optional[str] = None
    chat_jid: Optional[str] = None
    query: Optional[str] = None
    limit: int = Field(default=20, gt=0)
    page: int = Field(default=0, ge=0)

    def matches(self, message: Message) -> bool:
        """Check whether a message satisfies every supplied predicate."""
        if self.after is not None and not message.timestamp > self.after:
            return False
        if self.before is not None and not message.timestamp < self.before:
            return False
        if self.sender_jid and message.sender != self.sender_jid:
            return False
        if self.chat_jid and message.chat_jid != self.chat_jid:
            return False
        if self.query and self.query.lower() not in message.text.lower():
            return False
        return True


class SendReceipt(BaseModel):
    """Result of sending a chat message."""

    recipient: str
    message_id: str = ""
    success: bool = True
    error: Optional[str] = None


class MessageCard(BaseModel):
    """Result of posting a card to a Teams webhook."""

    webhook_url: str
    title: Optional[str] = None
    text: str
    color: Optional[str] = None
    success: bool
    error: Optional[str] = None


class TweetResponse(BaseModel):
    """Result of posting a tweet."""

    tweet_id: Optional[str] = None
    text: str
    success: bool
    error: Optional[str] = None


class WebhookValidation(BaseModel):
    """Result of checking a Teams webhook URL."""

    valid: bool
    webhook_url: str
    known_host: bool = False
    error: Optional[str] = None
