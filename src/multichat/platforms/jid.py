"""WhatsApp addressing: JID parsing and phone number normalization.

A JID looks like ``user@server``. Devices of a multi-device account add an
agent and/or device suffix to the user part: ``user.agent:device@server``.
"""

import re
from dataclasses import dataclass

from multichat.platforms.exceptions import InvalidIdentifierError

DEFAULT_USER_SERVER = "s.whatsapp.net"
GROUP_SERVER = "g.us"

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(value: str) -> str:
    """Strip every character that is not an ASCII digit.

    Args:
        value: Phone number in any human format (``+1 (555) 010-2000``)

    Returns:
        The digits only (``15550102000``)
    """
    return _NON_DIGITS.sub("", value)


@dataclass(frozen=True)
class JID:
    """A parsed WhatsApp address."""

    user: str
    server: str
    agent: int = 0
    device: int = 0

    @classmethod
    def parse(cls, value: str) -> "JID":
        """Parse a JID string.

        Args:
            value: String such as ``15550102000@s.whatsapp.net``

        Returns:
            Parsed JID

        Raises:
            InvalidIdentifierError: If the string is not a valid JID
        """
        value = value.strip()
        if any(ch.isspace() for ch in value):
            raise InvalidIdentifierError(f"invalid JID {value!r}: contains whitespace")
        if value.count("@") != 1:
            raise InvalidIdentifierError(f"invalid JID {value!r}: expected user@server")

        user_part, server = value.split("@")
        if not user_part or not server:
            raise InvalidIdentifierError(f"invalid JID {value!r}: empty user or server")

        agent = 0
        device = 0
        user = user_part
        if ":" in user:
            user, _, device_part = user.partition(":")
            if not device_part.isdigit():
                raise InvalidIdentifierError(f"invalid JID {value!r}: bad device {device_part!r}")
            device = int(device_part)
        if "." in user:
            user, _, agent_part = user.partition(".")
            if not agent_part.isdigit():
                raise InvalidIdentifierError(f"invalid JID {value!r}: bad agent {agent_part!r}")
            agent = int(agent_part)
        if not user:
            raise InvalidIdentifierError(f"invalid JID {value!r}: empty user")

        return cls(user=user, server=server, agent=agent, device=device)

    @classmethod
    def from_phone(cls, phone_number: str) -> "JID":
        """Build the one-to-one chat JID for a phone number.

        Raises:
            InvalidIdentifierError: If the number contains no digits
        """
        digits = normalize_phone(phone_number)
        if not digits:
            raise InvalidIdentifierError(f"invalid phone number {phone_number!r}: no digits")
        return cls(user=digits, server=DEFAULT_USER_SERVER)

    @classmethod
    def from_recipient(cls, recipient: str) -> "JID":
        """Resolve a send target given as a JID or as a bare phone number."""
        if "@" in recipient:
            return cls.parse(recipient)
        return cls.from_phone(recipient)

    @property
    def is_group(self) -> bool:
        """Whether this JID addresses a group chat."""
        return self.server == GROUP_SERVER

    def __str__(self) -> str:
        if self.agent:
            return f"{self.user}.{self.agent}:{self.device}@{self.server}"
        if self.device:
            return f"{self.user}:{self.device}@{self.server}"
        return f"{self.user}@{self.server}"
