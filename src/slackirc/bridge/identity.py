"""Resolution of Slack user and channel IDs to display names."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional, TypeVar

from slackirc.bridge.exceptions import LookupFailed
from slackirc.bridge.models import Identity, SlackChannel
from slackirc.bridge.protocol import WorkspaceAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IdentityResolver:
    """Resolves opaque Slack IDs through the workspace adapter.

    Successful lookups are cached for the process lifetime, keyed by ID
    (channels also by name). The cache has no eviction: renamed users keep
    their old name until clear_cache() and memory grows with the number of
    distinct users seen.

    A lookup the workspace answered with LookupFailed (unknown user, deleted
    channel) is remembered for negative_ttl seconds, so a departed member is
    not looked up again on every message. Timeouts and unexpected errors are
    not remembered and retry on the next message.

    Every lookup is bounded by the timeout, including time spent waiting for
    a concurrency slot. Slots are per batch: each resolve_users,
    resolve_channels or channel_members call gets its own max_concurrent
    gate, so a batch of hanging lookups for one message never delays a
    lookup made for the other relay direction. Failures never raise: users
    resolve to Identity.unresolved(id) and channels to None.
    """

    def __init__(
        self,
        workspace: WorkspaceAdapter,
        timeout: float = 10.0,
        max_concurrent: int = 4,
        negative_ttl: float = 60.0,
    ):
        """Initialize the resolver.

        Args:
            workspace: Adapter answering user/channel lookups
            timeout: Seconds before a single lookup is abandoned
            max_concurrent: Maximum lookups in flight for one batch
            negative_ttl: Seconds a not-found answer is remembered (0 disables)
        """
        self._workspace = workspace
        self._timeout = timeout
        self._max_concurrent = max_concurrent
        self._negative_ttl = negative_ttl
        self._users: dict[str, Identity] = {}
        self._channels: dict[str, SlackChannel] = {}
        # ("user" | "channel", reference) -> monotonic expiry
        self._misses: dict[tuple[str, str], float] = {}

    def _gate(self) -> asyncio.Semaphore:
        return asyncio.Semaphore(self._max_concurrent)

    def _recently_missed(self, key: tuple[str, str]) -> bool:
        expiry = self._misses.get(key)
        if expiry is None:
            return False
        if expiry <= time.monotonic():
            del self._misses[key]
            return False
        return True

    async def _call(
        self,
        description: str,
        lookup: Callable[[], Awaitable[T]],
        gate: Optional[asyncio.Semaphore] = None,
        miss_key: Optional[tuple[str, str]] = None,
    ) -> Optional[T]:
        """Run one time-limited lookup, optionally behind a gate; None on any failure."""

        async def bounded() -> T:
            if gate is None:
                return await lookup()
            async with gate:
                return await lookup()

        try:
            return await asyncio.wait_for(bounded(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out after {self._timeout}s looking up {description}")
        except LookupFailed as e:
            logger.warning(f"Could not look up {description}: {e}")
            if miss_key is not None and self._negative_ttl > 0:
                self._misses[miss_key] = time.monotonic() + self._negative_ttl
        except Exception as e:
            logger.warning(f"Unexpected error looking up {description}: {e}", exc_info=True)
        return None

    async def resolve_user(self, user_id: str) -> Identity:
        """Resolve a user ID, falling back to the raw ID on failure."""
        return await self._resolve_user(user_id, None)

    async def _resolve_user(self, user_id: str, gate: Optional[asyncio.Semaphore]) -> Identity:
        cached = self._users.get(user_id)
        if cached is not None:
            return cached

        key = ("user", user_id)
        if self._recently_missed(key):
            logger.debug(f"Skipping lookup of user {user_id}, not found recently")
            return Identity.unresolved(user_id)

        identity = await self._call(
            f"user {user_id}", lambda: self._workspace.lookup_user(user_id), gate, key
        )
        if identity is None:
            return Identity.unresolved(user_id)

        self._users[user_id] = identity
        return identity

    async def resolve_channel(self, channel: str) -> Optional[SlackChannel]:
        """Resolve a channel by ID or name ('#' prefix optional).

        Returns:
            The channel, or None if it cannot be resolved
        """
        return await self._resolve_channel(channel, None)

    async def _resolve_channel(
        self, channel: str, gate: Optional[asyncio.Semaphore]
    ) -> Optional[SlackChannel]:
        name = channel.lstrip("#")
        cached = self._channels.get(name)
        if cached is not None:
            return cached

        key = ("channel", name)
        if self._recently_missed(key):
            logger.debug(f"Skipping lookup of channel {channel}, not found recently")
            return None

        resolved = await self._call(
            f"channel {channel}", lambda: self._workspace.lookup_channel(name), gate, key
        )
        if resolved is None:
            return None

        self._channels[resolved.id] = resolved
        self._channels[resolved.name] = resolved
        return resolved

    async def resolve_users(self, user_ids: Iterable[str]) -> dict[str, Identity]:
        """Resolve several user IDs concurrently, at most max_concurrent at a time."""
        unique = list(dict.fromkeys(user_ids))
        gate = self._gate()
        identities = await asyncio.gather(*(self._resolve_user(uid, gate) for uid in unique))
        return dict(zip(unique, identities))

    async def resolve_channels(self, channel_ids: Iterable[str]) -> dict[str, SlackChannel]:
        """Resolve several channel IDs concurrently, omitting failures."""
        unique = list(dict.fromkeys(channel_ids))
        gate = self._gate()
        channels = await asyncio.gather(*(self._resolve_channel(cid, gate) for cid in unique))
        return {cid: ch for cid, ch in zip(unique, channels) if ch is not None}

    async def channel_members(self, channel_id: str) -> list[Identity]:
        """Resolve the members of a channel.

        Membership is fetched on every call; member identities come from the
        user cache. Unresolvable members are left out.
        """
        member_ids = await self._call(
            f"members of {channel_id}",
            lambda: self._workspace.list_channel_members(channel_id),
        )
        if not member_ids:
            return []

        identities = await self.resolve_users(member_ids)
        return [identity for identity in identities.values() if identity.resolved]

    def clear_cache(self) -> None:
        """Forget every cached user and channel, and every remembered miss."""
        self._users.clear()
        self._channels.clear()
        self._misses.clear()

    @property
    def cache_size(self) -> dict[str, int]:
        """Number of cached entries per kind."""
        return {"users": len(self._users), "channels": len(self._channels), "misses": len(self._misses)}
