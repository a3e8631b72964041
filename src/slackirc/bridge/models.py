"""Data models for the Slack <-> IRC bridge."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Bridged platforms."""

    SLACK = "slack"
    IRC = "irc"


class Direction(str, Enum):
    """One-way relay pipeline."""

    SLACK_TO_IRC = "slack_to_irc"
    IRC_TO_SLACK = "irc_to_slack"

    @property
    def source(self) -> Platform:
        """Platform the messages of this direction originate from."""
        return Platform.SLACK if self is Direction.SLACK_TO_IRC else Platform.IRC


class RelayOutcome(str, Enum):
    """Terminal state of one relay pipeline run."""

    DISPATCHED = "dispatched"
    UNMAPPED_CHANNEL = "unmapped_channel"
    NOT_MEMBER = "not_member"
    MUTED = "muted"
    IGNORED = "ignored"
    RATE_LIMITED = "rate_limited"
    DISPATCH_FAILED = "dispatch_failed"


class Identity(BaseModel):
    """A platform user resolved to a display name."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    resolved: bool = True

    @classmethod
    def unresolved(cls, user_id: str) -> "Identity":
        """Fallback identity that displays the raw ID."""
        return cls(id=user_id, display_name=user_id, resolved=False)

    def __str__(self) -> str:
        """String representation for logging."""
        return self.display_name if self.resolved else f"{self.id} (unresolved)"


class SlackChannel(BaseModel):
    """A Slack conversation as returned by the workspace adapter."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_channel: bool = True  # public channel
    is_group: bool = False  # legacy private group
    is_private: bool = False
    is_member: bool = True

    @property
    def mapping_name(self) -> str:
        """Name used as the channel mapping key: '#name' for public channels."""
        return f"#{self.name}" if self.is_channel else self.name


class SharedFile(BaseModel):
    """File attached to a Slack file_share message."""

    model_config = ConfigDict(frozen=True)

    permalink: str
    permalink_public: Optional[str] = None
    initial_comment: Optional[str] = None


# =============================================================================
# Inbound events
# =============================================================================


class _Event(BaseModel):
    """Fields shared by every relayable event."""

    model_config = ConfigDict(frozen=True)

    source: Platform
    channel: str
    author_id: str  # Slack user ID, or the nick on IRC
    author_name: Optional[str] = None
    text: str = ""

    def __str__(self) -> str:
        """String representation for logging."""
        return f"[{self.source.value}] {self.channel} {self.author_name or self.author_id}: {self.text[:50]}"


class PlainMessage(_Event):
    """Ordinary chat message."""

    kind: Literal["message"] = "message"


class ActionMessage(_Event):
    """/me action (Slack me_message, IRC CTCP ACTION)."""

    kind: Literal["action"] = "action"


class FileShare(_Event):
    """Slack file upload."""

    kind: Literal["file_share"] = "file_share"
    file: SharedFile


class Notice(_Event):
    """IRC NOTICE."""

    kind: Literal["notice"] = "notice"


class PresenceJoin(_Event):
    """A nick joined a channel."""

    kind: Literal["join"] = "join"


class PresenceLeave(_Event):
    """A nick parted a channel."""

    kind: Literal["leave"] = "leave"
    reason: Optional[str] = None


class PresenceQuit(_Event):
    """A nick quit the network; fans out to every shared channel."""

    kind: Literal["quit"] = "quit"
    channel: str = ""
    channels: list[str] = Field(default_factory=list)
    reason: Optional[str] = None


InboundEvent = Annotated[
    Union[
        PlainMessage,
        ActionMessage,
        FileShare,
        Notice,
        PresenceJoin,
        PresenceLeave,
        PresenceQuit,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Control events (transport signals, never relayed)
# =============================================================================


class Registered(BaseModel):
    """The platform connection is established and ready for commands."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registered"] = "registered"
    source: Platform


class Invite(BaseModel):
    """The bridge was invited to a channel."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["invite"] = "invite"
    source: Platform
    channel: str
    author_id: str


class TransportAborted(BaseModel):
    """The connection gave up after exhausting its retry policy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["aborted"] = "aborted"
    source: Platform
    reason: Optional[str] = None


ControlEvent = Annotated[
    Union[Registered, Invite, TransportAborted],
    Field(discriminator="kind"),
]


class OutgoingMessage(BaseModel):
    """A message to be sent to a platform, with formatting options."""

    channel: str
    text: str
    username: Optional[str] = None  # Slack display name override
    icon_url: Optional[str] = None  # Slack avatar override
    parse: Optional[str] = None  # Slack "full" parsing links channels and users
