"""Per-direction mute policy."""

from collections.abc import Iterable

from slackirc.bridge.models import Direction, Platform

SLACKBOT_USER_ID = "USLACKBOT"


class MuteFilter:
    """Drops messages from configured names, independently per direction.

    Membership is an exact, case-sensitive string match: muting "Bob" on IRC
    does not mute "bob". IRC nicks are case-insensitive on most networks, so
    list every spelling that should be muted.
    """

    def __init__(
        self,
        slack: Iterable[str] = (),
        irc: Iterable[str] = (),
        mute_slackbot: bool = False,
    ):
        """Initialize the filter.

        Args:
            slack: Slack user names whose messages are not relayed to IRC
            irc: IRC nicks whose messages are not relayed to Slack
            mute_slackbot: Drop everything Slackbot posts
        """
        self._lists: dict[Platform, frozenset[str]] = {
            Platform.SLACK: frozenset(slack),
            Platform.IRC: frozenset(irc),
        }
        self._mute_slackbot = mute_slackbot

    def is_muted(self, direction: Direction, name: str) -> bool:
        """Check a name against the mute list of the direction's source platform."""
        return name in self._lists[direction.source]

    def is_system_bot(self, user_id: str) -> bool:
        """Check whether a Slack user ID is Slackbot and Slackbot is muted."""
        return self._mute_slackbot and user_id == SLACKBOT_USER_ID
