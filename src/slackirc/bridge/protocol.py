"""Platform adapter protocol definition."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Union

from slackirc.bridge.models import (
    ControlEvent,
    Identity,
    InboundEvent,
    OutgoingMessage,
    Platform,
    SlackChannel,
)

AdapterEvent = Union[InboundEvent, ControlEvent]


class PlatformAdapter(ABC):
    """Abstract base class for platform adapters.

    Each side of the bridge implements this protocol. Connection handling,
    reconnects and flood control belong to the adapter; the bridge only
    consumes events and sends messages.
    """

    def __init__(self) -> None:
        """Initialize the platform adapter."""
        self._running = False

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """The platform this adapter connects to."""
        ...

    @property
    def is_running(self) -> bool:
        """Check if the adapter is currently running."""
        return self._running

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving events.

        Implementations set self._running = True once connected.
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect and set self._running = False."""
        ...

    @abstractmethod
    def receive_events(self) -> AsyncIterator[AdapterEvent]:
        """Receive events from the platform.

        Yields:
            InboundEvent or ControlEvent objects in arrival order.

        The iterator ends when the adapter stops. A TransportAborted event
        signals that the connection will not come back.
        """
        ...

    @abstractmethod
    async def send_message(self, message: OutgoingMessage) -> str:
        """Send a message to a channel on this platform.

        Returns:
            Platform-specific message ID (may be empty)

        Raises:
            DispatchFailure: If sending fails
        """
        ...

    async def health_check(self) -> bool:
        """Check if the platform connection is healthy.

        Default implementation reports the running flag.
        """
        return self._running


class WorkspaceAdapter(PlatformAdapter):
    """Adapter for the directory side of the bridge (Slack).

    Messages there reference users and channels by opaque ID, so the adapter
    also answers lookups.
    """

    @abstractmethod
    async def lookup_user(self, user_id: str) -> Identity:
        """Resolve a user ID to an identity.

        Raises:
            LookupFailed: On network error or unknown user
        """
        ...

    @abstractmethod
    async def lookup_channel(self, channel: str) -> SlackChannel:
        """Resolve a channel by ID or by name (without leading '#').

        Raises:
            LookupFailed: On network error or unknown channel
        """
        ...

    @abstractmethod
    async def list_channel_members(self, channel_id: str) -> list[str]:
        """List the user IDs of a channel's members.

        Raises:
            LookupFailed: On network error or unknown channel
        """
        ...


class NetworkAdapter(PlatformAdapter):
    """Adapter for the name-addressed side of the bridge (IRC)."""

    @abstractmethod
    async def join(self, channel: str) -> None:
        """Join a channel (a key may follow the name after a space)."""
        ...

    @abstractmethod
    async def send_raw(self, *args: str) -> None:
        """Send a raw protocol command, e.g. ("PRIVMSG", "NickServ", "IDENTIFY pw")."""
        ...
