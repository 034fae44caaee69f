"""Pagination and filtering shared by the messenger adapters."""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from multichat.platforms.models import Message, MessageFilter

T = TypeVar("T")


def paginate(items: Sequence[T], limit: int, page: int) -> list[T]:
    """Return the ``[page * limit, page * limit + limit)`` window of items.

    Args:
        items: Full ordered result set
        limit: Page size, must be positive
        page: Zero-based page number

    Returns:
        At most ``limit`` items; empty when the page is past the end
    """
    if limit <= 0 or page < 0:
        return []

    start = page * limit
    if start >= len(items):
        return []
    return list(items[start : start + limit])


def select_messages(messages: Iterable[Message], message_filter: MessageFilter) -> list[Message]:
    """Apply a message filter and its pagination window.

    Ordering of the input is preserved; the backend decides it.
    """
    matched = [message for message in messages if message_filter.matches(message)]
    return paginate(matched, message_filter.limit, message_filter.page)
