"""
Pydantic configuration schema for slackirc.

This module defines all configuration models with validation. Models are
frozen: configuration is validated once at startup and never mutated.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AVATAR_URL = "https://picsum.photos/seed/$username/64/64"
DEFAULT_SLACK_USERNAME_FORMAT = "$username (IRC)"
DEFAULT_IRC_USERNAME_FORMAT = "<$username> "
DEFAULT_RELAY_BOTS = ["ᛑ", "talk42", "slairck"]

# =============================================================================
# Slack Configuration
# =============================================================================


class SlackConfig(BaseModel):
    """Slack workspace connection and display configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    token: str = Field(min_length=1)  # Bot User OAuth Token (xoxb-...)
    app_token: str | None = None  # App-Level Token for Socket Mode (xapp-...)
    username_format: str = DEFAULT_SLACK_USERNAME_FORMAT
    # False disables avatars entirely instead of falling back to the default
    avatar_url: Literal[False] | str = DEFAULT_AVATAR_URL
    mute_slackbot: bool = False


# =============================================================================
# IRC Configuration
# =============================================================================


class StatusNoticesConfig(BaseModel):
    """Which IRC presence events are announced on Slack."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    join: bool = False
    leave: bool = False


class IrcConfig(BaseModel):
    """IRC network connection and display configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server: str = Field(min_length=1)
    nickname: str = Field(min_length=1)
    username_format: str = DEFAULT_IRC_USERNAME_FORMAT
    options: dict[str, Any] = Field(default_factory=dict)  # passed to the IRC transport
    status_notices: StatusNoticesConfig = Field(default_factory=StatusNoticesConfig)
    relay_bots: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAY_BOTS))
    auto_send_commands: list[list[str]] = Field(default_factory=list)


# =============================================================================
# Relay Policy Configuration
# =============================================================================


class MuteUsersConfig(BaseModel):
    """Per-direction mute lists, matched exactly (case-sensitive)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    slack: list[str] = Field(default_factory=list)
    irc: list[str] = Field(default_factory=list)


class LookupConfig(BaseModel):
    """Timeouts and fan-out limits for remote lookups and dispatch."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout: float = Field(default=10.0, gt=0.0)
    dispatch_timeout: float = Field(default=10.0, gt=0.0)
    max_concurrent: int = Field(default=4, ge=1, le=64)
    # Seconds a "not found" lookup answer is remembered; 0 disables
    negative_ttl: float = Field(default=60.0, ge=0.0)


class RateLimitConfig(BaseModel):
    """Outbound flood protection per destination channel."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable: bool = False
    max_tokens: int = Field(default=20, ge=1)
    refill_rate: float = Field(default=1.0, gt=0.0)
    refill_interval: float = Field(default=1.0, gt=0.0)


# =============================================================================
# Root Configuration
# =============================================================================


class BridgeConfig(BaseModel):
    """
    Root configuration model for slackirc.

    Required: slack.token, irc.server, irc.nickname and a non-empty
    channel_mapping (Slack channel -> IRC channel, optionally "#chan key").
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    slack: SlackConfig
    irc: IrcConfig
    channel_mapping: dict[str, str] = Field(min_length=1)
    command_characters: list[str] = Field(default_factory=list)
    mute_users: MuteUsersConfig = Field(default_factory=MuteUsersConfig)
    lookups: LookupConfig = Field(default_factory=LookupConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    def avatar_template(self) -> str | None:
        """Get the avatar URL template, or None when avatars are disabled."""
        if self.slack.avatar_url is False:
            return None
        return self.slack.avatar_url or DEFAULT_AVATAR_URL
