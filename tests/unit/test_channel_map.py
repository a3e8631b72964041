"""Unit tests for the Slack <-> IRC channel map."""

import logging

import pytest

from slackirc.bridge.channel_map import ChannelMap, normalize_irc_channel
from slackirc.bridge.exceptions import ConfigurationError


class TestNormalizeIrcChannel:
    """Tests for normalize_irc_channel."""

    def test_lowercases(self):
        assert normalize_irc_channel("#Bridge") == "#bridge"

    def test_strips_channel_key(self):
        assert normalize_irc_channel("#Chan secret") == "#chan"

    def test_strips_surrounding_whitespace(self):
        assert normalize_irc_channel("  #chan  ") == "#chan"


class TestChannelMap:
    """Tests for ChannelMap."""

    @pytest.fixture
    def channel_map(self):
        return ChannelMap(
            {
                "#general": "#bridge",
                "#random": "#Random-IRC sekrit",
                "privgroup": "#private",
            }
        )

    def test_resolve_forward(self, channel_map):
        assert channel_map.resolve_forward("#general") == "#bridge"
        assert channel_map.resolve_forward("#random") == "#random-irc"
        assert channel_map.resolve_forward("privgroup") == "#private"

    def test_resolve_forward_unmapped(self, channel_map):
        assert channel_map.resolve_forward("#offtopic") is None
        assert channel_map.resolve_forward("general") is None

    def test_resolve_reverse_case_insensitive(self, channel_map):
        assert channel_map.resolve_reverse("#bridge") == "#general"
        assert channel_map.resolve_reverse("#BRIDGE") == "#general"
        assert channel_map.resolve_reverse("#random-irc") == "#random"

    def test_resolve_reverse_unmapped(self, channel_map):
        assert channel_map.resolve_reverse("#elsewhere") is None

    def test_round_trip(self, channel_map):
        """Every entry of a one-to-one mapping maps back to itself."""
        for slack_channel, _ in channel_map.items():
            irc_channel = channel_map.resolve_forward(slack_channel)
            assert channel_map.resolve_reverse(irc_channel) == slack_channel

    def test_join_targets_keep_keys(self, channel_map):
        assert channel_map.join_targets == ["#bridge", "#Random-IRC sekrit", "#private"]

    def test_irc_channels_normalized(self, channel_map):
        assert channel_map.irc_channels == ["#bridge", "#random-irc", "#private"]

    def test_container_protocol(self, channel_map):
        assert len(channel_map) == 3
        assert "#general" in channel_map
        assert "#offtopic" not in channel_map

    def test_reverse_collision_last_wins(self, caplog):
        """Two Slack channels on one IRC channel: the later entry wins."""
        with caplog.at_level(logging.WARNING):
            channel_map = ChannelMap({"#a": "#shared", "#b": "#Shared"})

        assert channel_map.resolve_forward("#a") == "#shared"
        assert channel_map.resolve_forward("#b") == "#shared"
        assert channel_map.resolve_reverse("#shared") == "#b"
        assert "mapped from both #a and #b" in caplog.text

    def test_other_irc_prefixes_accepted(self):
        channel_map = ChannelMap({"#a": "&local", "#b": "+modeless", "#c": "!safe"})
        assert channel_map.resolve_reverse("&local") == "#a"


class TestChannelMapValidation:
    """Tests for malformed mappings."""

    def test_empty_mapping(self):
        with pytest.raises(ConfigurationError, match="mapping is empty"):
            ChannelMap({})

    def test_empty_slack_name(self):
        with pytest.raises(ConfigurationError, match="empty Slack channel name"):
            ChannelMap({"": "#chan"})

    def test_slack_name_with_whitespace(self):
        with pytest.raises(ConfigurationError, match="contains whitespace"):
            ChannelMap({"#my channel": "#chan"})

    def test_empty_irc_channel(self):
        with pytest.raises(ConfigurationError, match="empty IRC channel"):
            ChannelMap({"#general": "   "})

    def test_irc_value_without_prefix(self):
        with pytest.raises(ConfigurationError, match="not an IRC channel"):
            ChannelMap({"#general": "bridge"})

    def test_reports_every_problem(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ChannelMap({"#a": "nochan", "#b": ""})

        message = str(exc_info.value)
        assert message.startswith("Invalid channel mapping: ")
        assert "'#a'" in message
        assert "'#b'" in message
