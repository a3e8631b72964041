"""Bidirectional Slack <-> IRC channel mapping."""

import logging
from collections.abc import Iterator, Mapping

from slackirc.bridge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

IRC_CHANNEL_PREFIXES = ("#", "&", "+", "!")


def normalize_irc_channel(value: str) -> str:
    """Strip a trailing channel key and lowercase an IRC channel name.

    "#Chan secret" -> "#chan"
    """
    parts = value.split()
    return parts[0].lower() if parts else ""


class ChannelMap:
    """Validated mapping between Slack channels and IRC channels.

    Keys are Slack mapping names ("#general" for public channels, the bare
    name for private groups). Values are IRC channels, lowercased and with any
    join key removed; the raw values are kept as join targets.

    Reverse lookups are unique only when the mapping is one-to-one. If two
    Slack channels map to the same IRC channel, the entry that comes last in
    configuration order wins the reverse lookup and a warning is logged.
    """

    def __init__(self, mapping: Mapping[str, str]):
        """Build and validate the mapping.

        Args:
            mapping: Slack channel -> IRC channel (optionally "#chan key")

        Raises:
            ConfigurationError: Listing every malformed entry
        """
        problems = self._validate(mapping)
        if problems:
            raise ConfigurationError("Invalid channel mapping: " + "; ".join(problems))

        self._forward: dict[str, str] = {}
        self._reverse: dict[str, str] = {}
        self._join_targets: list[str] = []

        for slack_channel, irc_value in mapping.items():
            irc_channel = normalize_irc_channel(irc_value)
            self._forward[slack_channel] = irc_channel
            self._join_targets.append(irc_value.strip())

            previous = self._reverse.get(irc_channel)
            if previous is not None:
                logger.warning(
                    f"IRC channel {irc_channel} is mapped from both {previous} and "
                    f"{slack_channel}; messages from IRC go to {slack_channel}"
                )
            self._reverse[irc_channel] = slack_channel

        logger.debug(f"Loaded channel mapping with {len(self._forward)} entries")

    @staticmethod
    def _validate(mapping: Mapping[str, str]) -> list[str]:
        """Collect a description of every malformed entry."""
        problems = []
        if not mapping:
            problems.append("mapping is empty")

        for slack_channel, irc_value in mapping.items():
            if not isinstance(slack_channel, str) or not slack_channel.strip():
                problems.append(f"empty Slack channel name (-> {irc_value!r})")
            elif slack_channel != slack_channel.strip() or len(slack_channel.split()) != 1:
                problems.append(f"Slack channel {slack_channel!r} contains whitespace")

            if not isinstance(irc_value, str) or not irc_value.strip():
                problems.append(f"{slack_channel!r} maps to an empty IRC channel")
            elif not irc_value.strip().startswith(IRC_CHANNEL_PREFIXES):
                problems.append(
                    f"{slack_channel!r} maps to {irc_value!r}, which is not an IRC channel"
                )

        return problems

    def resolve_forward(self, slack_channel: str) -> str | None:
        """Get the IRC channel for a Slack mapping name, or None if unmapped."""
        return self._forward.get(slack_channel)

    def resolve_reverse(self, irc_channel: str) -> str | None:
        """Get the Slack mapping name for an IRC channel (case-insensitive)."""
        return self._reverse.get(irc_channel.lower())

    @property
    def join_targets(self) -> list[str]:
        """Raw IRC channel values, keys included, for joining on connect."""
        return list(self._join_targets)

    @property
    def irc_channels(self) -> list[str]:
        """Normalized IRC channel names."""
        return list(self._reverse)

    def items(self) -> Iterator[tuple[str, str]]:
        """Iterate (slack_channel, irc_channel) pairs in configuration order."""
        return iter(self._forward.items())

    def __contains__(self, slack_channel: object) -> bool:
        return slack_channel in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"ChannelMap({self._forward!r})"
