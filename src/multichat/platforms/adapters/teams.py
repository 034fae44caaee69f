"""Microsoft Teams messenger adapter.

Messages are posted as legacy Office 365 connector MessageCards to an
incoming webhook (O365 connector or Power Automate workflow URL). There is
no session: "connecting" validates the default webhook and opens the HTTP
client.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import Field

from multichat.platforms.exceptions import InvalidArgumentsError, InvalidIdentifierError
from multichat.platforms.models import MessageCard, PlatformType, WebhookValidation
from multichat.platforms.protocol import Messenger
from multichat.tools import Operation, OperationArguments
from multichat.tools.registry import OperationNamespace

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# Hosts of Power Automate workflows and O365 connectors. An entry matches the
# host exactly, as a prefix (regional "prod-NN" endpoints) or as a parent domain.
KNOWN_WEBHOOK_HOSTS = (
    "prod.apiflow.microsoft.com",
    "prod-",
    "outlook.office.com",
    "outlook.office365.com",
    "webhook.office.com",
)


def is_known_webhook_host(host: str) -> bool:
    """Check a hostname against the known Teams webhook hosts."""
    host = host.lower()
    for pattern in KNOWN_WEBHOOK_HOSTS:
        if host == pattern or host.startswith(pattern) or host.endswith("." + pattern):
            return True
    return False


def check_webhook_url(webhook_url: str) -> bool:
    """Validate a webhook URL's structure and report whether its host is known.

    Unknown hosts are logged but accepted.

    Args:
        webhook_url: URL to check

    Returns:
        True if the host is a known Teams webhook host

    Raises:
        InvalidIdentifierError: If the URL is not an absolute http(s) URL
    """
    try:
        parts = urlsplit(webhook_url)
        host = parts.hostname
    except ValueError as e:
        raise InvalidIdentifierError(f"invalid webhook URL {webhook_url!r}: {e}") from e

    if parts.scheme not in ("http", "https") or not host:
        raise InvalidIdentifierError(
            f"invalid webhook URL {webhook_url!r}: expected an absolute http(s) URL"
        )

    if not is_known_webhook_host(host):
        logger.warning(
            f"Webhook URL host {host!r} doesn't match known Teams patterns - will attempt anyway"
        )
        return False
    return True


def build_message_card(
    text: str,
    title: Optional[str] = None,
    color: Optional[str] = None,
    facts: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build the MessageCard JSON body.

    Facts become one section titled "Details", in the order given.
    """
    card: dict[str, Any] = {
        "@type": "MessageCard",
        "@context": "https://schema.org/extensions",
        "summary": title or text[:80],
        "text": text,
    }
    if title:
        card["title"] = title
    if color:
        card["themeColor"] = color
    if facts:
        card["sections"] = [
            {
                "title": "Details",
                "facts": [{"name": name, "value": value} for name, value in facts.items()],
            }
        ]
    return card


# Operation arguments


class SendMessageArgs(OperationArguments):
    message: str = Field(description="The message text to send")
    webhook_url: Optional[str] = Field(
        default=None,
        description=(
            "Teams webhook URL (Power Automate workflow URL or O365 connector URL). "
            "If not provided, uses the default webhook URL set at initialization."
        ),
    )
    title: Optional[str] = Field(default=None, description="Optional title for the message card")
    color: Optional[str] = Field(
        default=None,
        description="Optional theme color in hex format (e.g., '0078D4' for blue, 'FF0000' for red)",
    )


class SendRichMessageArgs(OperationArguments):
    text: str = Field(description="Main text content of the message")
    webhook_url: Optional[str] = Field(
        default=None,
        description="Teams webhook URL. If not provided, uses the default webhook URL.",
    )
    title: Optional[str] = Field(default=None, description="Title of the message card")
    color: Optional[str] = Field(
        default=None, description="Theme color in hex format (e.g., '0078D4', 'FF0000', '00FF00')"
    )
    facts: Optional[dict[str, str]] = Field(
        default=None,
        description="Key-value pairs to display as facts (e.g., {'Status': 'Active', 'Priority': 'High'})",
    )


class ValidateWebhookArgs(OperationArguments):
    webhook_url: str = Field(description="Teams webhook URL to validate")


class TeamsMessenger(Messenger):
    """Microsoft Teams messenger posting MessageCards to incoming webhooks.

    Configuration:
        - webhook_url: Default webhook used when a call names none
        - timeout: HTTP timeout in seconds
    """

    def __init__(
        self,
        webhook_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Teams messenger.

        Args:
            webhook_url: Default webhook URL (may be empty)
            timeout: HTTP timeout in seconds
            transport: Custom httpx transport, mainly for tests
        """
        super().__init__()
        self._default_webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def platform_type(self) -> PlatformType:
        """The platform this backend talks to."""
        return PlatformType.TEAMS

    @property
    def display_name(self) -> str:
        """Human-facing platform name."""
        return "Teams"

    @property
    def default_webhook_url(self) -> str:
        """Webhook used when a call does not name one."""
        return self._default_webhook_url

    async def _open(self) -> None:
        if self._default_webhook_url:
            check_webhook_url(self._default_webhook_url)
            logger.info("Default webhook URL validated successfully")
        else:
            logger.warning(
                "No default webhook URL provided - webhook URL must be specified for each message"
            )

        self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _close(self) -> None:
        http, self._http = self._http, None
        if http is not None:
            await http.aclose()

    def register_operations(self, namespace: OperationNamespace) -> None:
        """Register the Teams operations."""
        namespace.register(
            Operation(
                name="send_message",
                description="Send a simple message to a Microsoft Teams channel or chat via webhook URL",
                arguments=SendMessageArgs,
                handler=self._handle_send_message,
            )
        )
        namespace.register(
            Operation(
                name="send_rich_message",
                description=(
                    "Send a rich message card with title, text, color, and structured facts to Teams"
                ),
                arguments=SendRichMessageArgs,
                handler=self._handle_send_rich_message,
            )
        )
        namespace.register(
            Operation(
                name="validate_webhook",
                description="Validate a Teams webhook URL to ensure it's properly formatted",
                arguments=ValidateWebhookArgs,
                handler=self._handle_validate_webhook,
            )
        )

    async def send_message(
        self,
        message: str,
        webhook_url: Optional[str] = None,
        title: Optional[str] = None,
        color: Optional[str] = None,
    ) -> MessageCard:
        """Post a simple text card."""
        return await self._post_card(webhook_url, message, title, color, None)

    async def send_rich_message(
        self,
        text: str,
        webhook_url: Optional[str] = None,
        title: Optional[str] = None,
        color: Optional[str] = None,
        facts: Optional[dict[str, str]] = None,
    ) -> MessageCard:
        """Post a card with an optional "Details" facts section."""
        return await self._post_card(webhook_url, text, title, color, facts)

    async def validate_webhook(self, webhook_url: str) -> WebhookValidation:
        """Check a webhook URL without posting to it.

        Unknown hosts are valid but reported with ``known_host=False``.
        """
        self._ensure_connected()
        try:
            known = check_webhook_url(webhook_url)
        except InvalidIdentifierError as e:
            return WebhookValidation(valid=False, webhook_url=webhook_url, error=str(e))
        return WebhookValidation(valid=True, webhook_url=webhook_url, known_host=known)

    async def _post_card(
        self,
        webhook_url: Optional[str],
        text: str,
        title: Optional[str],
        color: Optional[str],
        facts: Optional[dict[str, str]],
    ) -> MessageCard:
        self._ensure_connected()
        if not text:
            raise InvalidArgumentsError("message text cannot be empty")

        url = webhook_url or self._default_webhook_url
        if not url:
            raise InvalidArgumentsError(
                "webhook URL is required - either provide it or set a default webhook URL"
            )
        check_webhook_url(url)

        card = build_message_card(text, title, color, facts)
        try:
            response = await self._http.post(url, json=card)
            response.raise_for_status()
        except httpx.HTTPError as e:
            error = self._platform_error("send Teams message", e)
            error.details = MessageCard(
                webhook_url=url,
                title=title,
                text=text,
                color=color,
                success=False,
                error=str(e),
            )
            raise error from e

        logger.info("Teams message sent successfully")
        return MessageCard(webhook_url=url, title=title, text=text, color=color, success=True)

    # Handlers

    async def _handle_send_message(self, args: SendMessageArgs) -> MessageCard:
        return await self.send_message(args.message, args.webhook_url, args.title, args.color)

    async def _handle_send_rich_message(self, args: SendRichMessageArgs) -> MessageCard:
        return await self.send_rich_message(
            args.text, args.webhook_url, args.title, args.color, args.facts
        )

    async def _handle_validate_webhook(self, args: ValidateWebhookArgs) -> WebhookValidation:
        return await self.validate_webhook(args.webhook_url)
