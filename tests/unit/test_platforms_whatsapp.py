"""Tests for the WhatsApp messenger adapter."""

import asyncio
import json

import pytest

from multichat.platforms.adapters.whatsapp import NO_HISTORY_NOTE, LoginEvent, WhatsAppMessenger
from multichat.platforms.exceptions import (
    ConnectError,
    FailureKind,
    InvalidArgumentsError,
    InvalidIdentifierError,
    NotConnectedError,
    PlatformError,
)
from multichat.platforms.models import ConnectionState, MessageFilter, PlatformType
from multichat.tools.registry import OperationNamespace

WHATSAPP_OPERATIONS = [
    "search_contacts",
    "list_messages",
    "list_chats",
    "get_chat",
    "get_direct_chat_by_contact",
    "get_contact_chats",
    "send_message",
]


def registered(messenger: WhatsAppMessenger) -> OperationNamespace:
    namespace = OperationNamespace(messenger.name)
    messenger.register_operations(namespace)
    return namespace


class TestWhatsAppLifecycle:
    """Tests for connect/disconnect."""

    def test_identity(self, whatsapp):
        """Test static identity."""
        assert whatsapp.platform_type is PlatformType.WHATSAPP
        assert whatsapp.name == "whatsapp"
        assert whatsapp.display_name == "WhatsApp"
        assert whatsapp.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_connect_with_stored_session(self, whatsapp, whatsapp_client):
        """Test connecting with an already paired device."""
        await whatsapp.connect()

        assert whatsapp.is_connected is True
        assert whatsapp.state is ConnectionState.CONNECTED
        assert whatsapp_client.connected is True

    @pytest.mark.asyncio
    async def test_connect_with_qr_pairing(self, fake_whatsapp_client_cls):
        """Test QR codes are consumed until the connection is up."""
        client = fake_whatsapp_client_cls(
            events=[
                LoginEvent(kind="code", code="2@abc"),
                LoginEvent(kind="code", code="2@def"),
                LoginEvent(kind="paired", code="15550102000"),
                LoginEvent(kind="connected"),
            ]
        )
        messenger = WhatsAppMessenger(client_factory=lambda _path: client)

        await messenger.connect()

        assert messenger.is_connected is True

    @pytest.mark.asyncio
    async def test_pairing_timeout_fails_connect(self, fake_whatsapp_client_cls):
        """Test a pairing timeout leaves the messenger disconnected."""
        client = fake_whatsapp_client_cls(
            events=[LoginEvent(kind="code", code="2@abc"), LoginEvent(kind="timeout")]
        )
        messenger = WhatsAppMessenger(client_factory=lambda _path: client)

        with pytest.raises(ConnectError, match="timeout"):
            await messenger.connect()

        assert messenger.state is ConnectionState.DISCONNECTED
        assert client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_login_events_ending_early_fails_connect(self, fake_whatsapp_client_cls):
        """Test the event stream ending without a connection is a connect error."""
        client = fake_whatsapp_client_cls(events=[LoginEvent(kind="code", code="2@abc")])
        messenger = WhatsAppMessenger(client_factory=lambda _path: client)

        with pytest.raises(ConnectError):
            await messenger.connect()

        assert messenger.is_connected is False

    @pytest.mark.asyncio
    async def test_client_factory_failure_is_connect_error(self):
        """Test client construction errors surface as connect errors."""

        def factory(_path):
            raise ImportError("neonize is required")

        messenger = WhatsAppMessenger(client_factory=factory)

        with pytest.raises(ConnectError, match="neonize is required"):
            await messenger.connect()

    @pytest.mark.asyncio
    async def test_pairing_wait_is_cancellable(self, fake_whatsapp_client_cls):
        """Test cancelling the task aborts a pending QR pairing."""
        client = fake_whatsapp_client_cls()

        async def endless_codes():
            while True:
                yield LoginEvent(kind="code", code="2@abc")
                await asyncio.sleep(0.01)

        client.login_events = endless_codes
        messenger = WhatsAppMessenger(client_factory=lambda _path: client)

        task = asyncio.create_task(messenger.connect())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert messenger.state is ConnectionState.DISCONNECTED
        assert client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_second_connect_refused(self, whatsapp):
        """Test messengers are single use."""
        await whatsapp.connect()
        await whatsapp.disconnect()

        with pytest.raises(ConnectError, match="already connected once"):
            await whatsapp.connect()

    @pytest.mark.asyncio
    async def test_disconnect(self, whatsapp, whatsapp_client):
        """Test disconnect releases the client."""
        await whatsapp.connect()
        await whatsapp.disconnect()

        assert whatsapp.is_connected is False
        assert whatsapp_client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_disconnect_when_never_connected(self, whatsapp):
        """Test disconnect is safe without a connection."""
        await whatsapp.disconnect()

        assert whatsapp.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_never_raises(self, whatsapp, whatsapp_client):
        """Test cleanup errors are swallowed into the log."""

        async def failing_disconnect():
            raise RuntimeError("socket already closed")

        await whatsapp.connect()
        whatsapp_client.disconnect = failing_disconnect

        await whatsapp.disconnect()

        assert whatsapp.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_dropped_socket_reads_as_disconnected(self, whatsapp, whatsapp_client):
        """Test the connected flag follows the client socket."""
        await whatsapp.connect()
        whatsapp_client.connected = False

        assert whatsapp.is_connected is False


class TestWhatsAppQueries:
    """Tests for the query operations."""

    @pytest.mark.asyncio
    async def test_search_contacts_by_name(self, whatsapp):
        """Test case-insensitive name search."""
        await whatsapp.connect()

        assert [c.name for c in await whatsapp.search_contacts("BOB")] == ["Bob Builder"]
        assert await whatsapp.search_contacts("BOB") == await whatsapp.search_contacts("bob")

    @pytest.mark.asyncio
    async def test_search_contacts_by_phone(self, whatsapp):
        """Test phone number search."""
        await whatsapp.connect()

        contacts = await whatsapp.search_contacts("555010")

        assert [c.jid for c in contacts] == [
            "15550100001@s.whatsapp.net",
            "15550102000@s.whatsapp.net",
        ]
        assert contacts[0].phone_number == "15550100001"

    @pytest.mark.asyncio
    async def test_search_results_sorted_by_jid(self, whatsapp):
        """Test results are ordered by JID string."""
        await whatsapp.connect()

        jids = [c.jid for c in await whatsapp.search_contacts("")]

        assert jids == sorted(jids)
        assert len(jids) == 4

    @pytest.mark.asyncio
    async def test_list_chats(self, whatsapp):
        """Test contacts are listed as chats, sorted and named."""
        await whatsapp.connect()

        chats = await whatsapp.list_chats(limit=20, page=0)

        assert [chat.jid for chat in chats] == [
            "120363025246125486@g.us",
            "15550100001@s.whatsapp.net",
            "15550102000@s.whatsapp.net",
            "4915112345678@s.whatsapp.net",
        ]
        assert chats[0].is_group is True
        # A contact without a name falls back to the user part
        assert chats[3].name == "4915112345678"

    @pytest.mark.asyncio
    async def test_list_chats_pagination(self, whatsapp):
        """Test list_chats returns exactly the requested window."""
        await whatsapp.connect()

        assert len(await whatsapp.list_chats(limit=3, page=0)) == 3
        assert [c.jid for c in await whatsapp.list_chats(limit=3, page=1)] == [
            "4915112345678@s.whatsapp.net"
        ]
        assert await whatsapp.list_chats(limit=3, page=2) == []

    @pytest.mark.asyncio
    async def test_unparsable_contact_is_skipped(self, whatsapp, whatsapp_client):
        """Test contacts with broken JIDs do not break listing."""
        whatsapp_client.contacts["broken"] = "Nobody"
        await whatsapp.connect()

        assert len(await whatsapp.list_chats(limit=20, page=0)) == 4

    @pytest.mark.asyncio
    async def test_contact_store_failure(self, whatsapp, whatsapp_client):
        """Test contact store errors are platform errors."""
        whatsapp_client.contacts_error = RuntimeError("store locked")
        await whatsapp.connect()

        with pytest.raises(PlatformError, match="store locked"):
            await whatsapp.list_chats(limit=20, page=0)

    @pytest.mark.asyncio
    async def test_list_messages_is_empty_with_note(self, whatsapp):
        """Test message history is an explicit capability gap."""
        await whatsapp.connect()

        result = await whatsapp.list_messages(MessageFilter())

        assert result.payload == []
        assert result.note == NO_HISTORY_NOTE

    @pytest.mark.asyncio
    async def test_list_messages_validates_identifiers(self, whatsapp):
        """Test identifier filters are still validated."""
        await whatsapp.connect()

        with pytest.raises(InvalidIdentifierError):
            await whatsapp.list_messages(MessageFilter(chat_jid="not-a-jid"))

    @pytest.mark.asyncio
    async def test_get_chat(self, whatsapp):
        """Test chat details use the stored contact name."""
        await whatsapp.connect()

        chat = await whatsapp.get_chat("15550102000@s.whatsapp.net")

        assert chat.name == "Bob Builder"
        assert chat.is_group is False

    @pytest.mark.asyncio
    async def test_get_chat_unknown_contact(self, whatsapp):
        """Test unknown chats fall back to the JID user part."""
        await whatsapp.connect()

        chat = await whatsapp.get_chat("447700900123@s.whatsapp.net")

        assert chat.name == "447700900123"

    @pytest.mark.asyncio
    async def test_get_chat_invalid_jid(self, whatsapp):
        """Test invalid JIDs are identifier errors."""
        await whatsapp.connect()

        with pytest.raises(InvalidIdentifierError):
            await whatsapp.get_chat("bob")

    @pytest.mark.asyncio
    async def test_get_direct_chat_by_contact(self, whatsapp):
        """Test phone numbers resolve to the direct chat."""
        await whatsapp.connect()

        chat = await whatsapp.get_direct_chat_by_contact("+1 (555) 010-2000")

        assert chat.jid == "15550102000@s.whatsapp.net"
        assert chat.name == "Bob Builder"

    @pytest.mark.asyncio
    async def test_get_contact_chats(self, whatsapp):
        """Test a contact's chats are its direct chat."""
        await whatsapp.connect()

        chats = await whatsapp.get_contact_chats("15550100001@s.whatsapp.net")

        assert [chat.name for chat in chats] == ["Alice"]

    @pytest.mark.asyncio
    async def test_queries_require_connection(self, whatsapp):
        """Test every query fails while disconnected."""
        with pytest.raises(NotConnectedError):
            await whatsapp.search_contacts("bob")
        with pytest.raises(NotConnectedError):
            await whatsapp.list_chats(limit=20, page=0)
        with pytest.raises(NotConnectedError):
            await whatsapp.get_chat("15550102000@s.whatsapp.net")
        with pytest.raises(NotConnectedError):
            await whatsapp.list_messages(MessageFilter())


class TestWhatsAppSend:
    """Tests for send_message."""

    @pytest.mark.asyncio
    async def test_send_to_phone_number(self, whatsapp, whatsapp_client):
        """Test bare phone numbers are normalized."""
        await whatsapp.connect()

        receipt = await whatsapp.send_message("+1 555-010-2000", "Hi Bob")

        assert whatsapp_client.sent == [("15550102000@s.whatsapp.net", "Hi Bob")]
        assert receipt.recipient == "15550102000@s.whatsapp.net"
        assert receipt.message_id == "MSG1"
        assert receipt.success is True

    @pytest.mark.asyncio
    async def test_send_to_group_jid(self, whatsapp, whatsapp_client):
        """Test JIDs are used as given."""
        await whatsapp.connect()

        await whatsapp.send_message("120363025246125486@g.us", "Hi all")

        assert whatsapp_client.sent == [("120363025246125486@g.us", "Hi all")]

    @pytest.mark.asyncio
    async def test_send_invalid_recipient(self, whatsapp, whatsapp_client):
        """Test unusable recipients are identifier errors."""
        await whatsapp.connect()

        with pytest.raises(InvalidIdentifierError):
            await whatsapp.send_message("bob@", "Hi")
        with pytest.raises(InvalidIdentifierError):
            await whatsapp.send_message("bob", "Hi")

        assert whatsapp_client.sent == []

    @pytest.mark.asyncio
    async def test_send_empty_message(self, whatsapp):
        """Test empty messages are rejected."""
        await whatsapp.connect()

        with pytest.raises(InvalidArgumentsError):
            await whatsapp.send_message("15550102000", "")

    @pytest.mark.asyncio
    async def test_send_failure_carries_receipt(self, whatsapp, whatsapp_client):
        """Test transport errors are wrapped with the failed receipt."""
        whatsapp_client.send_error = RuntimeError("server returned 479")
        await whatsapp.connect()

        with pytest.raises(PlatformError) as exc_info:
            await whatsapp.send_message("15550102000", "Hi")

        details = exc_info.value.details
        assert details.success is False
        assert details.error == "server returned 479"

    @pytest.mark.asyncio
    async def test_send_requires_connection(self, whatsapp):
        """Test sending while disconnected fails."""
        with pytest.raises(NotConnectedError):
            await whatsapp.send_message("15550102000", "Hi")


class TestWhatsAppOperations:
    """Tests for the registered operations."""

    def test_registers_all_operations(self, whatsapp):
        """Test the operation set."""
        assert registered(whatsapp).list_operation_names() == WHATSAPP_OPERATIONS

    def test_registration_does_not_connect(self, whatsapp):
        """Test registering leaves the state alone."""
        registered(whatsapp)

        assert whatsapp.state is ConnectionState.DISCONNECTED

    def test_list_messages_schema(self, whatsapp):
        """Test list_messages exposes filters and pagination."""
        schema = registered(whatsapp).get("list_messages").get_input_schema()

        assert set(schema["properties"]) == {
            "after",
            "before",
            "sender_jid",
            "chat_jid",
            "query",
            "limit",
            "page",
        }
        assert schema["properties"]["limit"]["default"] == 20
        assert "required" not in schema

    @pytest.mark.asyncio
    async def test_every_operation_fails_when_disconnected(self, whatsapp):
        """Test not_connected for every operation."""
        namespace = registered(whatsapp)
        arguments = {
            "search_contacts": {"query": "bob"},
            "list_messages": {},
            "list_chats": {},
            "get_chat": {"chat_jid": "15550102000@s.whatsapp.net"},
            "get_direct_chat_by_contact": {"phone_number": "15550102000"},
            "get_contact_chats": {"contact_jid": "15550102000@s.whatsapp.net"},
            "send_message": {"recipient": "15550102000", "message": "Hi"},
        }

        for name in WHATSAPP_OPERATIONS:
            result = await namespace.get(name).invoke(arguments[name])
            assert result.error_kind is FailureKind.NOT_CONNECTED, name

    @pytest.mark.asyncio
    async def test_list_chats_operation(self, whatsapp):
        """Test list_chats through the operation boundary."""
        namespace = registered(whatsapp)
        await whatsapp.connect()

        result = await namespace.get("list_chats").invoke({"limit": 2, "page": 1})

        chats = json.loads(result.output)
        assert [chat["jid"] for chat in chats] == [
            "15550102000@s.whatsapp.net",
            "4915112345678@s.whatsapp.net",
        ]
        assert "last_message" not in chats[0]

    @pytest.mark.asyncio
    async def test_list_messages_operation_note(self, whatsapp):
        """Test list_messages returns [] plus the advisory note."""
        namespace = registered(whatsapp)
        await whatsapp.connect()

        result = await namespace.get("list_messages").invoke(
            {"after": "2024-05-01T00:00:00Z", "chat_jid": "15550102000@s.whatsapp.net"}
        )

        assert result.is_error is False
        assert result.output == "[]"
        assert result.notes == [NO_HISTORY_NOTE]

    @pytest.mark.asyncio
    async def test_list_messages_invalid_date(self, whatsapp):
        """Test an invalid date is reported with its own kind."""
        namespace = registered(whatsapp)
        await whatsapp.connect()

        result = await namespace.get("list_messages").invoke({"after": "not-a-date"})

        assert result.error_kind is FailureKind.INVALID_DATE

    @pytest.mark.asyncio
    async def test_send_message_operation(self, whatsapp):
        """Test send_message returns the receipt as JSON."""
        namespace = registered(whatsapp)
        await whatsapp.connect()

        result = await namespace.get("send_message").invoke(
            {"recipient": "15550102000", "message": "Hi"}
        )

        assert json.loads(result.output) == {
            "recipient": "15550102000@s.whatsapp.net",
            "message_id": "MSG1",
            "success": True,
        }

    @pytest.mark.asyncio
    async def test_send_message_operation_failure_details(self, whatsapp, whatsapp_client):
        """Test failed sends append the receipt as details."""
        namespace = registered(whatsapp)
        whatsapp_client.send_error = RuntimeError("boom")
        await whatsapp.connect()

        result = await namespace.get("send_message").invoke(
            {"recipient": "15550102000", "message": "Hi"}
        )

        assert result.error_kind is FailureKind.PLATFORM
        assert result.output.startswith(
            "send_message failed [platform_error]: failed to send message: boom"
        )
        assert '"success": false' in result.output


class TestNeonizeClient:
    """Tests for the neonize-backed client wrapper."""

    def test_requires_neonize(self, monkeypatch, temp_dir):
        """Test a clear install hint when neonize is missing."""
        from multichat.platforms.adapters import whatsapp_client

        monkeypatch.setattr(whatsapp_client, "NEONIZE_AVAILABLE", False)

        with pytest.raises(ImportError, match="multichat\\[whatsapp\\]"):
            whatsapp_client.NeonizeClient(str(temp_dir / "device.db"))

    @pytest.mark.asyncio
    async def test_default_factory_surfaces_missing_neonize(self, monkeypatch, temp_dir):
        """Test connect without neonize fails with a connect error."""
        from multichat.platforms.adapters import whatsapp_client

        monkeypatch.setattr(whatsapp_client, "NEONIZE_AVAILABLE", False)
        messenger = WhatsAppMessenger(device_db=str(temp_dir / "device.db"))

        with pytest.raises(ConnectError, match="neonize is required"):
            await messenger.connect()
