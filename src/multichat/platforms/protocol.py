"""Messenger backend protocol definition."""

import logging
from abc import ABC, abstractmethod

from multichat.platforms.exceptions import (
    ConnectError,
    MessengerError,
    NotConnectedError,
    PlatformError,
)
from multichat.platforms.models import ConnectionState, PlatformType
from multichat.tools.registry import OperationNamespace

logger = logging.getLogger(__name__)


class Messenger(ABC):
    """Abstract base class for messenger backends.

    Each platform (WhatsApp, Teams, Twitter/X) implements this protocol so
    the dispatch server can serve it without platform knowledge. A backend
    is single-use: it connects once, registers its operations once and is
    disconnected at shutdown.
    """

    def __init__(self) -> None:
        """Initialize the messenger."""
        self._state = ConnectionState.DISCONNECTED
        self._used = False

    @property
    @abstractmethod
    def platform_type(self) -> PlatformType:
        """The platform this backend talks to."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-facing platform name (e.g. "Twitter/X")."""
        ...

    @property
    def name(self) -> str:
        """Static backend identifier, used for labelling only."""
        return self.platform_type.value

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the messenger is connected."""
        return self._state is ConnectionState.CONNECTED

    async def connect(self) -> None:
        """Establish the platform session.

        May block for a long time (e.g. waiting for QR pairing); cancel the
        calling task to abort.

        Raises:
            ConnectError: If the session cannot be established or the
                messenger was already used
        """
        if self._used:
            raise ConnectError(
                f"{self.display_name} messenger was already connected once; create a new one",
                self.name,
            )
        self._used = True

        logger.info(f"Connecting to {self.display_name}")
        self._state = ConnectionState.CONNECTING
        try:
            await self._open()
        except BaseException as e:
            self._state = ConnectionState.DISCONNECTED
            await self._release_after_failed_open()
            if isinstance(e, ConnectError) or not isinstance(e, Exception):
                raise
            raise ConnectError(f"failed to connect to {self.display_name}: {e}", self.name) from e

        self._state = ConnectionState.CONNECTED
        logger.info(f"{self.display_name} messenger connected successfully")

    async def disconnect(self) -> None:
        """Release platform resources.

        Safe to call when never connected. Always ends disconnected and never
        raises; cleanup failures are logged.
        """
        try:
            await self._close()
        except Exception as e:
            logger.warning(f"Error while disconnecting from {self.display_name}: {e}")
        finally:
            self._state = ConnectionState.DISCONNECTED
        logger.info(f"{self.display_name} messenger disconnected")

    @abstractmethod
    def register_operations(self, namespace: OperationNamespace) -> None:
        """Declare this backend's full operation set into the namespace.

        Called exactly once, after connect and before serving. Must not
        change the connection state.
        """
        ...

    @abstractmethod
    async def _open(self) -> None:
        """Platform-specific session setup, called by connect()."""
        ...

    @abstractmethod
    async def _close(self) -> None:
        """Platform-specific cleanup, called by disconnect()."""
        ...

    async def _release_after_failed_open(self) -> None:
        """Clean up whatever a failed _open() left behind."""
        try:
            await self._close()
        except Exception as e:
            logger.debug(f"Cleanup after failed connect raised: {e}")

    def _ensure_connected(self) -> None:
        """Precondition for every operation touching the platform.

        Raises:
            NotConnectedError: If the messenger is not connected
        """
        if not self.is_connected:
            raise NotConnectedError(self.display_name)

    def _platform_error(self, action: str, error: Exception) -> MessengerError:
        """Wrap an SDK failure, logging it once here."""
        logger.error(f"{self.display_name}: failed to {action}: {error}")
        return PlatformError(f"failed to {action}: {error}", self.name)

    def __repr__(self) -> str:
        """Representation."""
        return f"<{type(self).__name__} state={self._state.value}>"
