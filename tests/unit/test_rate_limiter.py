"""Unit tests for the outbound rate limiter."""

import asyncio

import pytest

from slackirc.bridge.models import Platform
from slackirc.bridge.rate_limiter import RateLimiter, RateLimitExceeded


class TestRateLimiter:
    """Tests for RateLimiter class."""

    @pytest.fixture
    def limiter(self):
        """Create a rate limiter for testing."""
        return RateLimiter(max_tokens=3, refill_rate=1.0, refill_interval=60.0)

    def test_make_key(self):
        assert RateLimiter.make_key(Platform.IRC, "#bridge") == "irc:#bridge"

    @pytest.mark.asyncio
    async def test_check_limit_consumes_token(self, limiter):
        """Test that check_limit consumes a token."""
        await limiter.check_limit(Platform.IRC, "#bridge")

        tokens, _ = limiter._buckets["irc:#bridge"]
        assert tokens == 2

    @pytest.mark.asyncio
    async def test_check_limit_raises_when_exceeded(self, limiter):
        """Test that check_limit raises exception when limit exceeded."""
        for _ in range(3):
            await limiter.check_limit(Platform.IRC, "#bridge")

        with pytest.raises(RateLimitExceeded) as exc_info:
            await limiter.check_limit(Platform.IRC, "#bridge")

        assert exc_info.value.key == "irc:#bridge"
        assert exc_info.value.retry_after > 0
        assert "Rate limit exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_channels_have_separate_buckets(self, limiter):
        """Exhausting one destination leaves the others alone."""
        for _ in range(3):
            await limiter.check_limit(Platform.IRC, "#bridge")

        await limiter.check_limit(Platform.IRC, "#other")
        await limiter.check_limit(Platform.SLACK, "#bridge")

    @pytest.mark.asyncio
    async def test_tokens_refill(self):
        """Tokens come back after the refill interval."""
        limiter = RateLimiter(max_tokens=1, refill_rate=1.0, refill_interval=0.05)
        await limiter.check_limit(Platform.SLACK, "C1")

        with pytest.raises(RateLimitExceeded):
            await limiter.check_limit(Platform.SLACK, "C1")

        await asyncio.sleep(0.1)
        await limiter.check_limit(Platform.SLACK, "C1")

