"""Slack workspace adapter using Socket Mode."""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from typing import Any, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from slackirc.bridge.exceptions import ConfigurationError, DispatchFailure, LookupFailed
from slackirc.bridge.models import (
    ActionMessage,
    FileShare,
    Identity,
    InboundEvent,
    OutgoingMessage,
    PlainMessage,
    Platform,
    SharedFile,
    SlackChannel,
)
from slackirc.bridge.protocol import AdapterEvent, WorkspaceAdapter

logger = logging.getLogger(__name__)

_CHANNEL_ID = re.compile(r"[CGD][A-Z0-9]{6,}")
_PAGE_SIZE = 200


class SlackAdapter(WorkspaceAdapter):
    """Relays one Slack workspace over a Socket Mode WebSocket.

    Lookups and posting go through the Web API client, events arrive on the
    socket, so the bridge needs no public HTTP endpoint.

    Only plain messages, /me messages and file shares are relayed; bot
    messages, edits, joins and other subtypes are dropped here.

    The bot token (xoxb-) needs chat:write.customize so relayed IRC lines can
    carry the sender's nick and avatar. The app-level token (xapp-) opens
    the socket and start() refuses to run without it.
    """

    def __init__(
        self,
        bot_token: str,
        app_token: Optional[str] = None,
        web_client: Optional[AsyncWebClient] = None,
    ):
        # web_client is injectable for tests; bot_token is ignored when given
        super().__init__()

        self._app_token = app_token
        self._web_client = web_client or AsyncWebClient(token=bot_token)
        self._socket_client: Optional[SocketModeClient] = None
        self._event_queue: asyncio.Queue[AdapterEvent] = asyncio.Queue()
        self._bot_user_id: Optional[str] = None

    @property
    def platform(self) -> Platform:
        return Platform.SLACK

    async def start(self) -> None:
        """Authenticate and connect with Socket Mode."""
        if self._running:
            logger.warning("Slack adapter already running")
            return

        if not self._app_token:
            raise ConfigurationError("Missing configuration field slack.app_token")

        logger.info("Starting Slack adapter (Socket Mode)")

        try:
            auth_response = await self._web_client.auth_test()
            self._bot_user_id = auth_response["user_id"]
            logger.info(f"Slack bot authenticated as user ID: {self._bot_user_id}")
        except SlackApiError as e:
            logger.error(f"Failed to authenticate Slack bot: {e}")
            raise

        self._socket_client = SocketModeClient(
            app_token=self._app_token,
            web_client=self._web_client,
        )
        self._socket_client.socket_mode_request_listeners.append(self._handle_socket_event)
        await self._socket_client.connect()

        self._running = True
        logger.info("Connected to Slack")

    async def stop(self) -> None:
        """Disconnect from Slack."""
        if not self._running:
            logger.warning("Slack adapter not running")
            return

        logger.info("Stopping Slack adapter")
        if self._socket_client:
            await self._socket_client.close()

        self._running = False
        logger.info("Slack adapter stopped")

    async def _handle_socket_event(
        self, client: SocketModeClient, req: SocketModeRequest
    ) -> None:
        """Acknowledge a Socket Mode request and queue relayable messages."""
        await client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        if req.type != "events_api":
            return

        event = req.payload.get("event", {})
        if event.get("type") != "message":
            return

        inbound = self.convert_message(event)
        if inbound is not None:
            await self._event_queue.put(inbound)

    def convert_message(self, event: dict[str, Any]) -> Optional[InboundEvent]:
        """Convert a Slack message event into an inbound event.

        Returns:
            The event, or None for subtypes and messages that are not relayed
        """
        user_id = event.get("user")
        channel_id = event.get("channel")
        if not user_id or not channel_id:
            return None

        if user_id == self._bot_user_id:
            return None

        subtype = event.get("subtype")
        text = event.get("text") or ""
        fields = {"source": Platform.SLACK, "channel": channel_id, "author_id": user_id, "text": text}

        if subtype is None:
            return PlainMessage(**fields)
        if subtype == "me_message":
            return ActionMessage(**fields)
        if subtype == "file_share":
            shared = self._shared_file(event)
            if shared is None:
                return None
            return FileShare(file=shared, **fields)

        logger.debug(f"Ignoring Slack message subtype {subtype}")
        return None

    @staticmethod
    def _shared_file(event: dict[str, Any]) -> Optional[SharedFile]:
        """Extract the first shared file of a file_share message."""
        files = event.get("files") or []
        file = event.get("file") or (files[0] if files else None)
        if not file or not file.get("permalink"):
            return None

        # Legacy events carry the comment on the file, current ones as message text
        comment = (file.get("initial_comment") or {}).get("comment") or event.get("text") or None
        return SharedFile(
            permalink=file["permalink"],
            permalink_public=file.get("permalink_public"),
            initial_comment=comment,
        )

    async def receive_events(self) -> AsyncIterator[AdapterEvent]:
        """Receive events from Slack.

        Yields:
            Inbound events as they arrive
        """
        while self._running:
            try:
                # Wait with timeout to allow checking _running
                yield await asyncio.wait_for(self._event_queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

    # =========================================================================
    # Lookups
    # =========================================================================

    async def lookup_user(self, user_id: str) -> Identity:
        """Resolve a user ID to the user's Slack name."""
        try:
            response = await self._web_client.users_info(user=user_id)
        except SlackApiError as e:
            raise LookupFailed(str(e), platform="slack", reference=user_id) from e

        user = response.get("user") or {}
        if not user.get("name"):
            raise LookupFailed(f"No such user: {user_id}", platform="slack", reference=user_id)
        return Identity(id=user_id, display_name=user["name"])

    async def lookup_channel(self, channel: str) -> SlackChannel:
        """Resolve a channel by ID, or by name through the channel listing."""
        try:
            if _CHANNEL_ID.fullmatch(channel):
                response = await self._web_client.conversations_info(channel=channel)
                return self._to_channel(response["channel"])

            cursor = None
            while True:
                response = await self._web_client.conversations_list(
                    types="public_channel,private_channel",
                    limit=_PAGE_SIZE,
                    cursor=cursor,
                )
                for data in response.get("channels", []):
                    if data.get("name") == channel:
                        return self._to_channel(data)

                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    break
        except SlackApiError as e:
            raise LookupFailed(str(e), platform="slack", reference=channel) from e

        raise LookupFailed(f"No such channel: {channel}", platform="slack", reference=channel)

    async def list_channel_members(self, channel_id: str) -> list[str]:
        """List member user IDs of a channel, following pagination."""
        members: list[str] = []
        cursor = None
        try:
            while True:
                response = await self._web_client.conversations_members(
                    channel=channel_id, limit=_PAGE_SIZE, cursor=cursor
                )
                members.extend(response.get("members", []))
                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    return members
        except SlackApiError as e:
            raise LookupFailed(str(e), platform="slack", reference=channel_id) from e

    @staticmethod
    def _to_channel(data: dict[str, Any]) -> SlackChannel:
        return SlackChannel(
            id=data["id"],
            name=data.get("name", data["id"]),
            is_channel=bool(data.get("is_channel", False)),
            is_group=bool(data.get("is_group", False)),
            is_private=bool(data.get("is_private", False)),
            is_member=bool(data.get("is_member", False)),
        )

    # =========================================================================
    # Sending
    # =========================================================================

    async def send_message(self, message: OutgoingMessage) -> str:
        """Post a message to a Slack channel.

        Returns:
            Message timestamp (ts) of the posted message

        Raises:
            DispatchFailure: If Slack rejects the message
        """
        options = {
            key: value
            for key, value in (
                ("username", message.username),
                ("icon_url", message.icon_url),
                ("parse", message.parse),
            )
            if value is not None
        }

        try:
            response = await self._web_client.chat_postMessage(
                channel=message.channel,
                text=message.text,
                **options,
            )
        except SlackApiError as e:
            raise DispatchFailure(str(e), platform="slack", channel=message.channel) from e

        return response.get("ts", "")

    async def health_check(self) -> bool:
        """Check if the Slack connection is healthy."""
        if not self._running:
            return False

        try:
            await self._web_client.auth_test()
            return True
        except SlackApiError as e:
            logger.error(f"Slack health check failed: {e}")
            return False
