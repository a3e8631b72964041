"""Slack <-> IRC relay core.

Architecture:
    Adapters -> Bridge -> RelayRouter -> (ChannelMap, MuteFilter, IdentityResolver, text) -> Adapters

Key Components:
    - ChannelMap: Validated Slack <-> IRC channel correspondence
    - IdentityResolver: Cached, bounded lookups of Slack user and channel IDs
    - MuteFilter: Per-direction mute lists
    - RelayRouter: The two directional relay pipelines
    - Bridge: Adapter lifecycle and event dispatch
"""

from slackirc.bridge.bridge import Bridge
from slackirc.bridge.channel_map import ChannelMap
from slackirc.bridge.exceptions import (
    BridgeError,
    ConfigurationError,
    DispatchFailure,
    FatalTransportFailure,
    LookupFailed,
)
from slackirc.bridge.identity import IdentityResolver
from slackirc.bridge.models import (
    Direction,
    Identity,
    InboundEvent,
    OutgoingMessage,
    Platform,
    RelayOutcome,
    SlackChannel,
)
from slackirc.bridge.mute import MuteFilter
from slackirc.bridge.protocol import NetworkAdapter, PlatformAdapter, WorkspaceAdapter
from slackirc.bridge.relay import RelayRouter

__all__ = [
    "Bridge",
    "ChannelMap",
    "IdentityResolver",
    "MuteFilter",
    "RelayRouter",
    "PlatformAdapter",
    "WorkspaceAdapter",
    "NetworkAdapter",
    "Platform",
    "Direction",
    "Identity",
    "SlackChannel",
    "InboundEvent",
    "OutgoingMessage",
    "RelayOutcome",
    "BridgeError",
    "ConfigurationError",
    "LookupFailed",
    "DispatchFailure",
    "FatalTransportFailure",
]
