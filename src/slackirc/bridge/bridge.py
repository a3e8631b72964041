"""Bridge lifecycle: wires the adapters to the relay router."""

import asyncio
import logging
from typing import Optional

from slackirc.bridge.channel_map import ChannelMap
from slackirc.bridge.exceptions import FatalTransportFailure
from slackirc.bridge.identity import IdentityResolver
from slackirc.bridge.models import Invite, Registered, TransportAborted
from slackirc.bridge.mute import MuteFilter
from slackirc.bridge.protocol import AdapterEvent, NetworkAdapter, PlatformAdapter, WorkspaceAdapter
from slackirc.bridge.rate_limiter import RateLimiter
from slackirc.bridge.relay import RelayRouter
from slackirc.config.schema import BridgeConfig

logger = logging.getLogger(__name__)


class Bridge:
    """Relays messages between a Slack workspace and an IRC network.

    The bridge:
    1. Validates the channel mapping before any connection is made
    2. Starts both adapters and listens to each event stream in its own task
    3. Handles each event to completion before taking the next from the same
       stream, so per-source ordering is preserved
    4. Sends auto-commands and joins mapped channels once IRC is registered
    5. Shuts down cleanly when a transport reports it gave up
    """

    def __init__(
        self,
        config: BridgeConfig,
        slack: WorkspaceAdapter,
        irc: NetworkAdapter,
        drain_timeout: float = 5.0,
    ):
        """Initialize the bridge.

        Args:
            config: Validated bridge configuration
            slack: Slack adapter (also answers ID lookups)
            irc: IRC adapter
            drain_timeout: Seconds to let in-flight events finish on stop

        Raises:
            ConfigurationError: If the channel mapping is malformed
        """
        self._config = config
        self._channel_map = ChannelMap(config.channel_mapping)
        self._slack = slack
        self._irc = irc
        self._drain_timeout = drain_timeout

        self._resolver = IdentityResolver(
            slack,
            timeout=config.lookups.timeout,
            max_concurrent=config.lookups.max_concurrent,
            negative_ttl=config.lookups.negative_ttl,
        )
        rate_limiter = None
        if config.rate_limit.enable:
            rate_limiter = RateLimiter(
                max_tokens=config.rate_limit.max_tokens,
                refill_rate=config.rate_limit.refill_rate,
                refill_interval=config.rate_limit.refill_interval,
            )
        self._router = RelayRouter(
            config=config,
            channel_map=self._channel_map,
            mute_filter=MuteFilter(
                slack=config.mute_users.slack,
                irc=config.mute_users.irc,
                mute_slackbot=config.slack.mute_slackbot,
            ),
            resolver=self._resolver,
            slack=slack,
            irc=irc,
            rate_limiter=rate_limiter,
        )

        self._listeners: set[asyncio.Task] = set()
        self._in_flight: set[asyncio.Task] = set()
        self._running = False
        self._shutdown: Optional[asyncio.Event] = None
        self._abort_reason: Optional[str] = None

    @property
    def channel_map(self) -> ChannelMap:
        return self._channel_map

    @property
    def router(self) -> RelayRouter:
        return self._router

    @property
    def resolver(self) -> IdentityResolver:
        return self._resolver

    @property
    def is_running(self) -> bool:
        """Check if the bridge is running."""
        return self._running

    async def start(self) -> None:
        """Start both adapters and begin relaying."""
        if self._running:
            logger.warning("Bridge is already running")
            return

        logger.debug("Connecting to IRC and Slack")
        self._running = True
        self._shutdown = asyncio.Event()
        self._abort_reason = None

        for adapter in (self._slack, self._irc):
            try:
                await adapter.start()
            except Exception:
                logger.error(f"Failed to start {adapter.platform.value} adapter", exc_info=True)
                await self.stop()
                raise

            task = asyncio.create_task(
                self._listen(adapter), name=f"listen-{adapter.platform.value}"
            )
            self._listeners.add(task)
            task.add_done_callback(self._listeners.discard)
            logger.info(f"Started {adapter.platform.value} adapter")

        logger.info(f"Bridge started with {len(self._channel_map)} mapped channels")

    async def run(self) -> None:
        """Start the bridge and relay until stopped.

        Raises:
            FatalTransportFailure: If an adapter aborted; raised after shutdown
        """
        await self.start()
        assert self._shutdown is not None
        await self._shutdown.wait()
        await self.stop()

        if self._abort_reason is not None:
            raise FatalTransportFailure(self._abort_reason)

    def request_stop(self) -> None:
        """Ask a running bridge to shut down (used by signal handlers)."""
        if self._shutdown is not None:
            self._shutdown.set()

    async def stop(self) -> None:
        """Drain in-flight events, stop listening and disconnect both adapters."""
        if not self._running:
            logger.warning("Bridge is not running")
            return

        logger.info("Stopping bridge")
        self._running = False

        if self._in_flight:
            _, pending = await asyncio.wait(set(self._in_flight), timeout=self._drain_timeout)
            if pending:
                logger.warning(f"Abandoning {len(pending)} events still in flight")

        for task in list(self._listeners):
            task.cancel()
        if self._listeners:
            await asyncio.gather(*self._listeners, return_exceptions=True)

        for adapter in (self._slack, self._irc):
            if not adapter.is_running:
                continue
            try:
                await adapter.stop()
                logger.info(f"Stopped {adapter.platform.value} adapter")
            except Exception as e:
                logger.error(f"Failed to stop {adapter.platform.value} adapter: {e}")

        if self._shutdown is not None:
            self._shutdown.set()
        logger.info("Bridge stopped")

    async def _listen(self, adapter: PlatformAdapter) -> None:
        """Consume one adapter's event stream, one event at a time."""
        platform = adapter.platform.value
        logger.info(f"Listening for events from {platform}")

        try:
            async for event in adapter.receive_events():
                if not self._running:
                    break

                handling = asyncio.create_task(self._handle_event(event))
                self._in_flight.add(handling)
                handling.add_done_callback(self._in_flight.discard)
                await handling

        except asyncio.CancelledError:
            logger.info(f"Stopped listening to {platform}")
        except Exception as e:
            logger.error(f"Error listening to {platform}: {e}", exc_info=True)
            self._abort(f"{platform} event stream failed: {e}")

    async def _handle_event(self, event: AdapterEvent) -> None:
        """Handle one control or inbound event; never raises."""
        try:
            if isinstance(event, Registered):
                await self._on_registered(event)
            elif isinstance(event, Invite):
                await self._on_invite(event)
            elif isinstance(event, TransportAborted):
                logger.error(
                    f"{event.source.value} connection aborted: {event.reason or 'retries exhausted'}"
                )
                self._abort(f"{event.source.value} connection aborted")
            else:
                outcomes = await self._router.handle(event)
                logger.debug(f"Relayed {event}: {[o.value for o in outcomes]}")
        except Exception as e:
            logger.error(f"Failed to handle {event}: {e}", exc_info=True)

    async def _on_registered(self, event: Registered) -> None:
        """Send configured auto-commands, then join every mapped IRC channel."""
        logger.debug(f"Registered with {event.source.value}")
        if event.source is not self._irc.platform:
            return

        timeout = self._config.lookups.dispatch_timeout
        for command in self._config.irc.auto_send_commands:
            try:
                await asyncio.wait_for(self._irc.send_raw(*command), timeout=timeout)
            except Exception as e:
                logger.error(f"Failed to send auto-command {command[0] if command else ''}: {e}")

        for target in self._channel_map.join_targets:
            try:
                await asyncio.wait_for(self._irc.join(target), timeout=timeout)
            except Exception as e:
                logger.error(f"Failed to join {target.split()[0]}: {e}")

    async def _on_invite(self, event: Invite) -> None:
        """Join channels we are invited to, but only mapped ones."""
        logger.debug(f"Received invite to {event.channel} from {event.author_id}")
        if self._channel_map.resolve_reverse(event.channel) is None:
            logger.debug(f"Channel not found in config, not joining: {event.channel}")
            return

        await asyncio.wait_for(
            self._irc.join(event.channel), timeout=self._config.lookups.dispatch_timeout
        )
        logger.debug(f"Joining channel: {event.channel}")

    def _abort(self, reason: str) -> None:
        """Record a fatal transport failure and wake run()."""
        if self._abort_reason is None:
            self._abort_reason = reason
        if self._shutdown is not None:
            self._shutdown.set()

    async def health_check(self) -> dict[str, bool]:
        """Check health of both adapters.

        Returns:
            Dict mapping platform names to health status
        """
        health = {}
        for adapter in (self._slack, self._irc):
            try:
                health[adapter.platform.value] = await adapter.health_check()
            except Exception as e:
                logger.error(f"Health check failed for {adapter.platform.value}: {e}")
                health[adapter.platform.value] = False
        return health
