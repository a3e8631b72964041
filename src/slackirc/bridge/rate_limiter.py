"""Outbound flood protection for relayed messages."""

import asyncio
import logging
import time

from slackirc.bridge.models import Platform

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a destination channel's rate limit is exceeded."""

    def __init__(self, key: str, retry_after: float):
        """Initialize exception.

        Args:
            key: Destination that exceeded its limit ("irc:#chan")
            retry_after: Seconds until a token is available again
        """
        self.key = key
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded for {key}, retry after {retry_after:.1f}s")


class RateLimiter:
    """Token bucket rate limiter keyed by destination channel.

    - Each destination gets a bucket with max_tokens (burst capacity)
    - Tokens refill at refill_rate per refill_interval seconds
    - Each relayed message consumes 1 token
    - With no tokens left the message is rejected, not queued

    Keys are destinations from the channel map, so the bucket set stays
    bounded by the number of bridged channels.
    """

    def __init__(
        self,
        max_tokens: int = 20,
        refill_rate: float = 1.0,
        refill_interval: float = 1.0,
    ):
        """Initialize rate limiter.

        Example:
            max_tokens=20, refill_rate=1, refill_interval=1
            = bursts of 20 messages, then 1 message per second
        """
        self._max_tokens = max_tokens
        self._refill_rate = refill_rate
        self._refill_interval = refill_interval

        # Buckets: {key: (tokens, last_refill_time)}
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def make_key(platform: Platform, channel: str) -> str:
        """Build the bucket key for a destination channel."""
        return f"{platform.value}:{channel}"

    def _current_tokens(self, key: str, now: float) -> float:
        tokens, last_refill = self._buckets.get(key, (float(self._max_tokens), now))
        refills = ((now - last_refill) / self._refill_interval) * self._refill_rate
        return min(float(self._max_tokens), tokens + refills)

    async def check_limit(self, platform: Platform, channel: str, cost: float = 1.0) -> None:
        """Consume tokens for one message to a destination channel.

        Raises:
            RateLimitExceeded: If the bucket does not hold enough tokens
        """
        key = self.make_key(platform, channel)
        async with self._lock:
            now = time.monotonic()
            tokens = self._current_tokens(key, now)

            if tokens < cost:
                retry_after = ((cost - tokens) / self._refill_rate) * self._refill_interval
                raise RateLimitExceeded(key, retry_after)

            self._buckets[key] = (tokens - cost, now)
            logger.debug(f"Rate limit check passed for {key}: {tokens - cost:.1f} tokens left")
