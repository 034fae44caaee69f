"""
Pytest configuration and fixtures for multichat tests.
"""

import tempfile
from collections.abc import AsyncIterator, Generator
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import pytest
from typer.testing import CliRunner

from multichat.platforms.adapters.whatsapp import LoginEvent, WhatsAppMessenger
from multichat.platforms.jid import JID


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point MULTICHAT_HOME at an empty directory and drop MULTICHAT_* variables."""
    import os

    for key in list(os.environ):
        if key.startswith("MULTICHAT_"):
            monkeypatch.delenv(key)

    home = temp_dir / ".multichat"
    home.mkdir()
    monkeypatch.setenv("MULTICHAT_HOME", str(home))
    return home


# =============================================================================
# WhatsApp fakes
# =============================================================================


class FakeWhatsAppClient:
    """In-memory stand-in for the neonize client."""

    def __init__(
        self,
        contacts: Optional[dict[str, str]] = None,
        events: Optional[list[LoginEvent]] = None,
    ):
        self.contacts = contacts or {}
        self.events = events if events is not None else [LoginEvent(kind="connected")]
        self.connected = False
        self.disconnect_calls = 0
        self.sent: list[tuple[str, str]] = []
        self.send_error: Optional[Exception] = None
        self.contacts_error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    async def login_events(self) -> AsyncIterator[LoginEvent]:
        for event in self.events:
            yield event

    async def get_all_contacts(self) -> dict[str, str]:
        if self.contacts_error is not None:
            raise self.contacts_error
        return dict(self.contacts)

    async def get_contact_name(self, jid: JID) -> str:
        if str(jid) not in self.contacts:
            raise LookupError(f"no contact {jid}")
        return self.contacts[str(jid)]

    async def send_text(self, jid: JID, text: str) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((str(jid), text))
        return f"MSG{len(self.sent)}"


@pytest.fixture
def fake_whatsapp_client_cls() -> type[FakeWhatsAppClient]:
    """Provide the fake client class, for tests that need custom login events."""
    return FakeWhatsAppClient


@pytest.fixture
def sample_contacts() -> dict[str, str]:
    """Contacts as stored on the device, keyed by JID."""
    return {
        "15550102000@s.whatsapp.net": "Bob Builder",
        "15550100001@s.whatsapp.net": "Alice",
        "120363025246125486@g.us": "Family Group",
        "4915112345678@s.whatsapp.net": "",
    }


@pytest.fixture
def whatsapp_client(sample_contacts: dict[str, str]) -> FakeWhatsAppClient:
    """Provide a fake WhatsApp client with sample contacts."""
    return FakeWhatsAppClient(contacts=sample_contacts)


@pytest.fixture
def whatsapp(whatsapp_client: FakeWhatsAppClient, temp_dir: Path) -> WhatsAppMessenger:
    """Provide a WhatsApp messenger (not connected) backed by the fake client."""
    return WhatsAppMessenger(
        device_db=str(temp_dir / "device.db"),
        client_factory=lambda _path: whatsapp_client,
    )


# =============================================================================
# Twitter fakes
# =============================================================================


class FakeTwitterClient:
    """Records tweepy AsyncClient calls."""

    def __init__(self):
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.error: Optional[Exception] = None

    async def create_tweet(self, text=None, in_reply_to_tweet_id=None, user_auth=True):
        if self.error is not None:
            raise self.error
        self.created.append(
            {"text": text, "in_reply_to_tweet_id": in_reply_to_tweet_id, "user_auth": user_auth}
        )
        return SimpleNamespace(data={"id": "1790000000000000001", "text": text})

    async def delete_tweet(self, id, user_auth=True):
        if self.error is not None:
            raise self.error
        self.deleted.append(id)
        return SimpleNamespace(data={"deleted": True})


@pytest.fixture
def twitter_client() -> FakeTwitterClient:
    """Provide a fake Twitter API client."""
    return FakeTwitterClient()


@pytest.fixture
def twitter_credentials() -> dict[str, str]:
    """Provide a full set of (fake) Twitter credentials."""
    return {
        "api_key": "key",
        "api_secret": "secret",
        "access_token": "token",
        "access_token_secret": "token-secret",
    }
