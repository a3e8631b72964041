"""Directional relay pipelines between Slack and IRC.

Each inbound event runs through:
    Received -> ChannelResolved -> MuteCheck -> IdentityResolved -> Formatted -> Dispatched
and ends in exactly one RelayOutcome. Expected early exits (unbridged channel,
muted author) are logged, never raised.
"""

import asyncio
import logging
from typing import Optional

from slackirc.bridge.channel_map import ChannelMap
from slackirc.bridge.exceptions import DispatchFailure
from slackirc.bridge.identity import IdentityResolver
from slackirc.bridge.models import (
    ActionMessage,
    Direction,
    FileShare,
    InboundEvent,
    Notice,
    OutgoingMessage,
    PlainMessage,
    Platform,
    PresenceJoin,
    PresenceLeave,
    PresenceQuit,
    RelayOutcome,
)
from slackirc.bridge.mute import MuteFilter
from slackirc.bridge.protocol import NetworkAdapter, PlatformAdapter, WorkspaceAdapter
from slackirc.bridge.rate_limiter import RateLimiter, RateLimitExceeded
from slackirc.bridge.text import (
    TransformContext,
    apply_username_template,
    collect_references,
    format_action,
    format_notice,
    link_mentions,
    slack_to_irc,
    split_relayed_author,
)
from slackirc.config.schema import BridgeConfig

logger = logging.getLogger(__name__)


class RelayRouter:
    """Runs the Slack -> IRC and IRC -> Slack pipelines.

    The router holds no per-event state, so one instance serves both
    directions concurrently. Every dispatch is bounded by a timeout and a
    failed dispatch drops the event without retrying.
    """

    def __init__(
        self,
        config: BridgeConfig,
        channel_map: ChannelMap,
        mute_filter: MuteFilter,
        resolver: IdentityResolver,
        slack: WorkspaceAdapter,
        irc: NetworkAdapter,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self._config = config
        self._channel_map = channel_map
        self._mute = mute_filter
        self._resolver = resolver
        self._slack = slack
        self._irc = irc
        self._rate_limiter = rate_limiter
        self._command_prefixes = tuple(c for c in config.command_characters if c)
        self._avatar_template = config.avatar_template()

    def is_command(self, text: str) -> bool:
        """Check whether text starts with a configured command character."""
        return bool(self._command_prefixes) and text.startswith(self._command_prefixes)

    async def handle(self, event: InboundEvent) -> list[RelayOutcome]:
        """Relay one inbound event in the direction given by its source."""
        if event.source is Platform.SLACK:
            return [await self.relay_to_irc(event)]
        return await self.relay_to_slack(event)

    # =========================================================================
    # Slack -> IRC
    # =========================================================================

    async def relay_to_irc(self, event: InboundEvent) -> RelayOutcome:
        """Relay a Slack message, action or file share to the mapped IRC channel."""
        if not isinstance(event, (PlainMessage, ActionMessage, FileShare)):
            logger.debug(f"Ignoring {event.kind} event from Slack")
            return RelayOutcome.IGNORED

        channel = await self._resolver.resolve_channel(event.channel)
        if channel is None:
            logger.info(f"Received message from a channel the bot isn't in: {event.channel}")
            return RelayOutcome.UNMAPPED_CHANNEL

        irc_channel = self._channel_map.resolve_forward(channel.mapping_name)
        logger.debug(f"Channel mapping {channel.mapping_name} -> {irc_channel}")
        if irc_channel is None:
            logger.info(f"Slack channel {channel.mapping_name} is not bridged, dropping message")
            return RelayOutcome.UNMAPPED_CHANNEL

        if self._mute.is_system_bot(event.author_id):
            logger.debug(f'Muted message from Slackbot: "{event.text}"')
            return RelayOutcome.MUTED

        author = await self._resolver.resolve_user(event.author_id)
        name = author.display_name if author.resolved else (event.author_name or author.display_name)
        if self._mute.is_muted(Direction.SLACK_TO_IRC, name):
            logger.debug(f"Muted message from Slack {name}: {event.text}")
            return RelayOutcome.MUTED

        text = await self._transform(event.text)
        lines = await self._compose_for_irc(event, name, text)
        messages = [OutgoingMessage(channel=irc_channel, text=line) for line in lines]
        return await self._dispatch(self._irc, messages)

    async def _transform(self, text: str) -> str:
        """Resolve the IDs a Slack text references, then rewrite it."""
        if not text:
            return ""

        user_ids, channel_ids = collect_references(text)
        users, channels = await asyncio.gather(
            self._resolver.resolve_users(user_ids),
            self._resolver.resolve_channels(channel_ids),
        )
        context = TransformContext(
            users={uid: identity.display_name for uid, identity in users.items() if identity.resolved},
            channels={cid: channel.name for cid, channel in channels.items()},
        )
        return slack_to_irc(text, context)

    async def _compose_for_irc(self, event: InboundEvent, name: str, text: str) -> list[str]:
        """Build the IRC lines for one Slack event."""
        if self.is_command(text):
            # Commands must reach IRC verbatim, so attribution goes on its own line
            return [f"Command sent from Slack by {name}:", text]

        username = apply_username_template(self._config.irc.username_format, name)

        if isinstance(event, FileShare):
            line = f"{username}File uploaded {event.file.permalink}"
            if event.file.permalink_public:
                line += f" / {event.file.permalink_public}"
            if event.file.initial_comment:
                # Current Slack events carry the comment as the message text too
                comment = event.file.initial_comment
                if comment == event.text:
                    line += f" - {text}"
                else:
                    line += f" - {await self._transform(comment)}"
            return [line]

        if isinstance(event, ActionMessage):
            return [f"Action: {name} {text}"]

        return [f"{username}{text}"]

    # =========================================================================
    # IRC -> Slack
    # =========================================================================

    async def relay_to_slack(self, event: InboundEvent) -> list[RelayOutcome]:
        """Relay an IRC event to Slack.

        Presence events become status notices when enabled; a quit fans out
        to every channel the nick shared with the bridge, so the result holds
        one outcome per pipeline run.
        """
        irc = self._config.irc
        nick = event.author_id

        if isinstance(event, PlainMessage):
            return [await self.send_to_slack(nick, event.channel, event.text)]

        if isinstance(event, Notice):
            return [await self.send_to_slack(nick, event.channel, format_notice(event.text))]

        if isinstance(event, ActionMessage):
            return [await self.send_to_slack(nick, event.channel, format_action(event.text))]

        if isinstance(event, PresenceJoin):
            if not irc.status_notices.join or nick == irc.nickname:
                return [RelayOutcome.IGNORED]
            notice = f"*{nick}* has joined the IRC channel"
            return [await self.send_to_slack(irc.nickname, event.channel, notice)]

        if isinstance(event, PresenceLeave):
            if not irc.status_notices.leave or nick == irc.nickname:
                return [RelayOutcome.IGNORED]
            notice = f"*{nick}* has left the IRC channel"
            return [await self.send_to_slack(irc.nickname, event.channel, notice)]

        if isinstance(event, PresenceQuit):
            if not irc.status_notices.leave or nick == irc.nickname:
                return [RelayOutcome.IGNORED]
            notice = f"*{nick}* has quit the IRC channel"
            return [await self.send_to_slack(irc.nickname, channel, notice) for channel in event.channels]

        logger.debug(f"Ignoring {event.kind} event from IRC")
        return [RelayOutcome.IGNORED]

    async def send_to_slack(self, author: str, irc_channel: str, text: str) -> RelayOutcome:
        """Relay text from an IRC nick in an IRC channel to the mapped Slack channel."""
        slack_name = self._channel_map.resolve_reverse(irc_channel)
        if slack_name is None:
            logger.info(f"IRC channel {irc_channel} is not bridged, dropping message")
            return RelayOutcome.UNMAPPED_CHANNEL

        slack_channel = await self._resolver.resolve_channel(slack_name)
        if slack_channel is None:
            logger.warning(f"Slack channel {slack_name} (mapped from {irc_channel}) not found")
            return RelayOutcome.UNMAPPED_CHANNEL

        if not slack_channel.is_member and not slack_channel.is_group:
            logger.info(f"Bot is not a member of Slack channel {slack_name}, dropping message")
            return RelayOutcome.NOT_MEMBER

        if self._mute.is_muted(Direction.IRC_TO_SLACK, author):
            logger.debug(f"Muted message from IRC {author}: {text}")
            return RelayOutcome.MUTED

        if author in self._config.irc.relay_bots:
            relayed = split_relayed_author(text)
            if relayed is not None:
                author, text = relayed
                if self._mute.is_muted(Direction.IRC_TO_SLACK, author):
                    logger.debug(f"Muted relayed message from IRC {author}: {text}")
                    return RelayOutcome.MUTED

        members = await self._resolver.channel_members(slack_channel.id)
        message = OutgoingMessage(
            channel=slack_channel.id,
            text=link_mentions(text, members),
            username=apply_username_template(self._config.slack.username_format, author),
            icon_url=(
                apply_username_template(self._avatar_template, author)
                if self._avatar_template
                else None
            ),
            parse="full",
        )
        return await self._dispatch(self._slack, [message])

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def _dispatch(
        self, adapter: PlatformAdapter, messages: list[OutgoingMessage]
    ) -> RelayOutcome:
        """Send messages for one event; failures are logged and end the event."""
        platform = adapter.platform.value
        channel = messages[0].channel

        if self._rate_limiter is not None:
            try:
                await self._rate_limiter.check_limit(adapter.platform, channel)
            except RateLimitExceeded as e:
                logger.warning(f"Dropping message to {platform} {channel}: {e}")
                return RelayOutcome.RATE_LIMITED

        timeout = self._config.lookups.dispatch_timeout
        for message in messages:
            logger.debug(f"Sending message to {platform} {message.channel}: {message.text}")
            try:
                await asyncio.wait_for(adapter.send_message(message), timeout=timeout)
            except asyncio.TimeoutError:
                logger.error(f"Timed out after {timeout}s sending to {platform} {channel}")
                return RelayOutcome.DISPATCH_FAILED
            except DispatchFailure as e:
                logger.error(f"Failed to send message to {platform} {channel}: {e}")
                return RelayOutcome.DISPATCH_FAILED
            except Exception as e:
                logger.error(f"Unexpected error sending to {platform} {channel}: {e}", exc_info=True)
                return RelayOutcome.DISPATCH_FAILED

        return RelayOutcome.DISPATCHED
