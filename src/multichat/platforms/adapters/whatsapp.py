"""WhatsApp messenger adapter.

The session is stored in a local SQLite device database; the first run pairs
the device by QR code, later runs reuse the stored session. WhatsApp keeps no
message history on the device store, so message listing is a known gap.
"""

import logging
from collections.abc import AsyncIterator, Callable
from typing import Literal, Optional, Protocol

from pydantic import BaseModel, Field

from multichat.platforms.exceptions import ConnectError, InvalidArgumentsError, MessengerError
from multichat.platforms.jid import JID
from multichat.platforms.models import Chat, Contact, MessageFilter, PlatformType, SendReceipt
from multichat.platforms.protocol import Messenger
from multichat.platforms.query import paginate, select_messages
from multichat.tools import LimitedResult, Operation, OperationArguments, PageArguments
from multichat.tools.arguments import parse_timestamp
from multichat.tools.registry import OperationNamespace

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_DB = "device.db"

NO_HISTORY_NOTE = (
    "WhatsApp message history is not available: no message store is kept, "
    "so list_messages returns no messages."
)


class LoginEvent(BaseModel):
    """One step of the login handshake reported by the client."""

    kind: Literal["code", "paired", "connected", "timeout", "error"]
    code: str = ""  # QR payload for "code", account for "paired"
    error: str = ""


class WhatsAppClient(Protocol):
    """What the adapter needs from a WhatsApp client implementation."""

    @property
    def is_connected(self) -> bool: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def login_events(self) -> AsyncIterator[LoginEvent]: ...

    async def get_all_contacts(self) -> dict[str, str]: ...

    async def get_contact_name(self, jid: JID) -> str: ...

    async def send_text(self, jid: JID, text: str) -> str: ...


ClientFactory = Callable[[str], WhatsAppClient]


def _neonize_client(device_db: str) -> WhatsAppClient:
    from multichat.platforms.adapters.whatsapp_client import NeonizeClient

    return NeonizeClient(device_db)


# Operation arguments


class SearchContactsArgs(OperationArguments):
    query: str = Field(description="Search term to match against contact names or phone numbers")


class ListMessagesArgs(PageArguments):
    after: Optional[str] = Field(
        default=None, description="RFC 3339 date; only return messages after this date"
    )
    before: Optional[str] = Field(
        default=None, description="RFC 3339 date; only return messages before this date"
    )
    sender_jid: Optional[str] = Field(default=None, description="Filter messages by sender JID")
    chat_jid: Optional[str] = Field(default=None, description="Filter messages by chat JID")
    query: Optional[str] = Field(default=None, description="Search term to filter messages by content")


class ListChatsArgs(PageArguments):
    pass


class GetChatArgs(OperationArguments):
    chat_jid: str = Field(description="The JID of the chat to retrieve")


class DirectChatArgs(OperationArguments):
    phone_number: str = Field(
        description="Phone number of the contact (with country code, no + or spaces)"
    )


class ContactChatsArgs(OperationArguments):
    contact_jid: str = Field(description="The JID of the contact")


class SendMessageArgs(OperationArguments):
    recipient: str = Field(description="Phone number (with country code) or JID of the recipient")
    message: str = Field(description="The message text to send")


class WhatsAppMessenger(Messenger):
    """WhatsApp messenger backed by a multi-device client session.

    Configuration:
        - device_db: Path of the SQLite device store (created on first run)
    """

    def __init__(
        self,
        device_db: str = DEFAULT_DEVICE_DB,
        client_factory: Optional[ClientFactory] = None,
    ):
        """Initialize the WhatsApp messenger.

        Args:
            device_db: Path of the SQLite device store
            client_factory: Builds the client for a device store path
                (defaults to the neonize client)
        """
        super().__init__()
        self._device_db = device_db
        self._client_factory = client_factory or _neonize_client
        self._client: Optional[WhatsAppClient] = None

    @property
    def platform_type(self) -> PlatformType:
        """The platform this backend talks to."""
        return PlatformType.WHATSAPP

    @property
    def display_name(self) -> str:
        """Human-facing platform name."""
        return "WhatsApp"

    @property
    def device_db(self) -> str:
        """Path of the device store."""
        return self._device_db

    @property
    def is_connected(self) -> bool:
        """Connected state that also reflects a dropped websocket."""
        return super().is_connected and self._client is not None and self._client.is_connected

    async def _open(self) -> None:
        self._client = self._client_factory(self._device_db)
        await self._client.connect()

        async for event in self._client.login_events():
            if event.kind == "code":
                logger.info("QR code received, scan it with WhatsApp to log in")
                logger.info(f"QR code: {event.code}")
            elif event.kind == "paired":
                logger.info(f"Device paired with {event.code or 'account'}")
            elif event.kind == "connected":
                return
            else:
                raise ConnectError(
                    f"WhatsApp login failed ({event.kind}): {event.error or 'no details'}",
                    self.name,
                )

        raise ConnectError("WhatsApp login ended before the connection was established", self.name)

    async def _close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.disconnect()

    def register_operations(self, namespace: OperationNamespace) -> None:
        """Register the WhatsApp operations."""
        namespace.register(
            Operation(
                name="search_contacts",
                description="Search for contacts by name or phone number",
                arguments=SearchContactsArgs,
                handler=self._handle_search_contacts,
            )
        )
        namespace.register(
            Operation(
                name="list_messages",
                description="Retrieve messages with optional filters (e.g. time, sender) and context",
                arguments=ListMessagesArgs,
                handler=self._handle_list_messages,
            )
        )
        namespace.register(
            Operation(
                name="list_chats",
                description="List available chats with metadata (name, JID, last message)",
                arguments=ListChatsArgs,
                handler=self._handle_list_chats,
            )
        )
        namespace.register(
            Operation(
                name="get_chat",
                description="Get information about a specific chat (metadata, messages)",
                arguments=GetChatArgs,
                handler=self._handle_get_chat,
            )
        )
        namespace.register(
            Operation(
                name="get_direct_chat_by_contact",
                description="Find a direct chat with a specific contact by phone number",
                arguments=DirectChatArgs,
                handler=self._handle_get_direct_chat_by_contact,
            )
        )
        namespace.register(
            Operation(
                name="get_contact_chats",
                description="List all chats involving a specific contact",
                arguments=ContactChatsArgs,
                handler=self._handle_get_contact_chats,
            )
        )
        namespace.register(
            Operation(
                name="send_message",
                description="Send a WhatsApp message to a specified phone number or group JID",
                arguments=SendMessageArgs,
                handler=self._handle_send_message,
            )
        )

    # Queries

    async def search_contacts(self, query: str) -> list[Contact]:
        """Find contacts whose name or phone number contains the query.

        Matching is case-insensitive; results are sorted by JID.
        """
        self._ensure_connected()
        needle = query.lower()

        results = []
        for jid, name in await self._load_contacts():
            if needle in name.lower() or needle in jid.user.lower():
                results.append(Contact(jid=str(jid), phone_number=jid.user, name=name))
        return results

    async def list_messages(self, message_filter: MessageFilter) -> LimitedResult:
        """List messages matching a filter.

        There is no history store, so the result is always empty and carries
        a note saying so.
        """
        self._ensure_connected()
        for value in (message_filter.chat_jid, message_filter.sender_jid):
            if value:
                JID.parse(value)

        return LimitedResult(payload=select_messages([], message_filter), note=NO_HISTORY_NOTE)

    async def list_chats(self, limit: int, page: int) -> list[Chat]:
        """List every known contact as a chat, sorted by JID and paginated."""
        self._ensure_connected()
        chats = [
            Chat(jid=str(jid), name=name or jid.user, is_group=jid.is_group)
            for jid, name in await self._load_contacts()
        ]
        return paginate(chats, limit, page)

    async def get_chat(self, chat_jid: str) -> Chat:
        """Describe one chat; the name falls back to the JID user part."""
        self._ensure_connected()
        jid = JID.parse(chat_jid)

        name = ""
        try:
            name = await self._client.get_contact_name(jid)
        except Exception as e:
            logger.debug(f"No stored contact for {jid}: {e}")

        return Chat(jid=str(jid), name=name or jid.user, is_group=jid.is_group)

    async def get_direct_chat_by_contact(self, phone_number: str) -> Chat:
        """Find the one-to-one chat for a phone number."""
        self._ensure_connected()
        return await self.get_chat(str(JID.from_phone(phone_number)))

    async def get_contact_chats(self, contact_jid: str) -> list[Chat]:
        """List chats involving a contact (its direct chat only)."""
        return [await self.get_chat(contact_jid)]

    async def send_message(self, recipient: str, message: str) -> SendReceipt:
        """Send a text message to a phone number or JID.

        Raises:
            NotConnectedError: If not connected
            InvalidArgumentsError: If the message is empty
            InvalidIdentifierError: If the recipient cannot be addressed
            PlatformError: If WhatsApp rejects the message
        """
        self._ensure_connected()
        if not message:
            raise InvalidArgumentsError("message cannot be empty")
        jid = JID.from_recipient(recipient)

        try:
            message_id = await self._client.send_text(jid, message)
        except MessengerError:
            raise
        except Exception as e:
            error = self._platform_error("send message", e)
            error.details = SendReceipt(recipient=str(jid), success=False, error=str(e))
            raise error from e

        logger.info(f"Message sent to {jid}")
        return SendReceipt(recipient=str(jid), message_id=message_id or "")

    async def _load_contacts(self) -> list[tuple[JID, str]]:
        try:
            raw = await self._client.get_all_contacts()
        except Exception as e:
            raise self._platform_error("get contacts", e) from e

        contacts = []
        for value, name in raw.items():
            try:
                contacts.append((JID.parse(value), name or ""))
            except MessengerError:
                logger.warning(f"Skipping contact with unparsable JID {value!r}")
        return sorted(contacts, key=lambda item: str(item[0]))

    # Handlers

    async def _handle_search_contacts(self, args: SearchContactsArgs) -> list[Contact]:
        return await self.search_contacts(args.query)

    async def _handle_list_messages(self, args: ListMessagesArgs) -> LimitedResult:
        message_filter = MessageFilter(
            after=parse_timestamp("after", args.after),
            before=parse_timestamp("before", args.before),
            sender_jid=args.sender_jid or None,
            chat_jid=args.chat_jid or None,
            query=args.query or None,
            limit=args.limit,
            page=args.page,
        )
        return await self.list_messages(message_filter)

    async def _handle_list_chats(self, args: ListChatsArgs) -> list[Chat]:
        return await self.list_chats(args.limit, args.page)

    async def _handle_get_chat(self, args: GetChatArgs) -> Chat:
        return await self.get_chat(args.chat_jid)

    async def _handle_get_direct_chat_by_contact(self, args: DirectChatArgs) -> Chat:
        return await self.get_direct_chat_by_contact(args.phone_number)

    async def _handle_get_contact_chats(self, args: ContactChatsArgs) -> list[Chat]:
        return await self.get_contact_chats(args.contact_jid)

    async def _handle_send_message(self, args: SendMessageArgs) -> SendReceipt:
        return await self.send_message(args.recipient, args.message)
