"""WhatsApp client backed by neonize (whatsmeow bindings).

Only this module touches the neonize API. The adapter talks to it through
the small ``WhatsAppClient`` protocol so it can be exercised without the
optional dependency installed.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Optional

from multichat.platforms.adapters.whatsapp import LoginEvent
from multichat.platforms.jid import JID

logger = logging.getLogger(__name__)

try:
    from neonize.aioze.client import NewAClient
    from neonize.aioze.events import ConnectedEv, LoggedOutEv, PairStatusEv
    from neonize.proto.Neonize_pb2 import JID as NeonizeJID
    from neonize.utils.jid import Jid2String

    NEONIZE_AVAILABLE = True
except ImportError:
    NEONIZE_AVAILABLE = False
    logger.debug("neonize not installed. Install with: pip install 'multichat[whatsapp]'")


class NeonizeClient:
    """Thin wrapper around ``neonize.aioze.client.NewAClient``.

    Login progress (QR codes, pairing, connection) is pushed by neonize
    callbacks into a queue and consumed by ``login_events()``.
    """

    def __init__(self, device_db: str):
        """Initialize the client.

        Args:
            device_db: Path of the SQLite file holding the device session
        """
        if not NEONIZE_AVAILABLE:
            raise ImportError(
                "neonize is required for the WhatsApp messenger. "
                "Install with: pip install 'multichat[whatsapp]'"
            )

        self._device_db = device_db
        self._events: asyncio.Queue[LoginEvent] = asyncio.Queue()
        self._connect_task: Optional[asyncio.Task] = None

        self._client = NewAClient(device_db)
        self._client.qr(self._on_qr)
        self._client.event(ConnectedEv)(self._on_connected)
        self._client.event(PairStatusEv)(self._on_pair_status)
        self._client.event(LoggedOutEv)(self._on_logged_out)

    @property
    def is_connected(self) -> bool:
        """Whether the websocket to WhatsApp is up."""
        return bool(self._client.is_connected)

    async def connect(self) -> None:
        """Start the neonize connection loop in the background."""
        logger.debug(f"Opening WhatsApp device store at {self._device_db}")
        self._connect_task = asyncio.create_task(self._client.connect())
        self._connect_task.add_done_callback(self._on_connect_done)

    async def disconnect(self) -> None:
        """Close the connection and stop the background loop."""
        try:
            await self._client.disconnect()
        finally:
            if self._connect_task is not None and not self._connect_task.done():
                self._connect_task.cancel()
            self._connect_task = None

    async def login_events(self) -> AsyncIterator[LoginEvent]:
        """Yield login progress until the connection is up or has failed."""
        while True:
            event = await self._events.get()
            yield event
            if event.kind in ("connected", "error"):
                return

    async def get_all_contacts(self) -> dict[str, str]:
        """Map every stored contact JID to its full name."""
        entries = await self._client.contact.get_all_contacts()
        return {Jid2String(entry.JID): entry.Info.FullName for entry in entries}

    async def get_contact_name(self, jid: JID) -> str:
        """Look up the full name stored for a JID ("" when unknown)."""
        info = await self._client.contact.get_contact(self._to_neonize(jid))
        return info.FullName

    async def send_text(self, jid: JID, text: str) -> str:
        """Send a plain text message and return its message ID."""
        response = await self._client.send_message(self._to_neonize(jid), text)
        return response.ID

    @staticmethod
    def _to_neonize(jid: JID) -> "NeonizeJID":
        return NeonizeJID(
            User=jid.user,
            Server=jid.server,
            RawAgent=jid.agent,
            Device=jid.device,
            Integrator=0,
            IsEmpty=False,
        )

    async def _on_qr(self, _client, data: bytes) -> None:
        self._events.put_nowait(LoginEvent(kind="code", code=data.decode(errors="replace")))

    async def _on_pair_status(self, _client, event) -> None:
        self._events.put_nowait(LoginEvent(kind="paired", code=event.ID.User))

    async def _on_connected(self, _client, _event) -> None:
        self._events.put_nowait(LoginEvent(kind="connected"))

    async def _on_logged_out(self, _client, event) -> None:
        self._events.put_nowait(LoginEvent(kind="error", error=f"logged out: {event.Reason}"))

    def _on_connect_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._events.put_nowait(LoginEvent(kind="error", error=str(error)))
