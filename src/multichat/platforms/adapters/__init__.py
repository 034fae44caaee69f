"""Messenger adapter implementations."""

from multichat.platforms.adapters.teams import TeamsMessenger
from multichat.platforms.adapters.twitter import TwitterMessenger
from multichat.platforms.adapters.whatsapp import WhatsAppMessenger

__all__ = [
    "TeamsMessenger",
    "TwitterMessenger",
    "WhatsAppMessenger",
]
