"""Unit tests for Slack <-> IRC text rewriting."""

from slackirc.bridge.models import Identity
from slackirc.bridge.text import (
    TransformContext,
    apply_username_template,
    collect_references,
    format_action,
    format_notice,
    link_mentions,
    load_emoji_table,
    slack_to_irc,
    split_relayed_author,
)


class TestSlackToIrc:
    """Tests for slack_to_irc."""

    def test_plain_text_unchanged(self):
        """Text without markup passes through untouched."""
        text = "Just a regular message, nothing special: 10:30 today"
        assert slack_to_irc(text) == text

    def test_plain_text_idempotent(self):
        """Transforming already-plain output again changes nothing."""
        once = slack_to_irc("hello world")
        assert slack_to_irc(once) == once

    def test_line_breaks_become_spaces(self):
        """Every kind of line break collapses to a single space."""
        assert slack_to_irc("one\ntwo\r\nthree\rfour") == "one two three four"

    def test_broadcast_channel(self):
        """<!channel> becomes @channel."""
        assert slack_to_irc("Hello <!channel> team") == "Hello @channel team"

    def test_broadcast_with_label(self):
        """Broadcast labels are dropped in favour of the keyword."""
        assert slack_to_irc("<!here|here> look") == "@here look"
        assert slack_to_irc("<!everyone>") == "@everyone"
        assert slack_to_irc("<!group>") == "@group"

    def test_user_mention_resolved(self):
        """A resolved user mention shows the display name."""
        context = TransformContext(users={"U123": "alice"})
        assert slack_to_irc("hi <@U123>", context) == "hi @alice"

    def test_user_mention_unresolved_shows_id(self):
        """An unresolvable mention without a label falls back to the ID."""
        assert slack_to_irc("hi <@U123>") == "hi @U123"

    def test_user_mention_label_fallback(self):
        """An unresolvable mention uses its embedded label."""
        assert slack_to_irc("hi <@U123|alice>") == "hi @alice"

    def test_resolved_name_beats_label(self):
        """A resolved name wins over a stale label."""
        context = TransformContext(users={"U123": "alice2"})
        assert slack_to_irc("<@U123|alice>", context) == "@alice2"

    def test_channel_reference(self):
        """Channel references resolve, then fall back to label, then ID."""
        context = TransformContext(channels={"C111": "general"})
        assert slack_to_irc("see <#C111>", context) == "see #general"
        assert slack_to_irc("see <#C222|random>") == "see #random"
        assert slack_to_irc("see <#C333>") == "see #C333"

    def test_link_without_label(self):
        """Bare links lose their angle brackets."""
        assert slack_to_irc("go to <https://example.com>") == "go to https://example.com"

    def test_link_with_label(self):
        """Labelled links show only the label."""
        assert slack_to_irc("<https://example.com|example.com>") == "example.com"
        assert slack_to_irc("<mailto:a@b.org|a@b.org>") == "a@b.org"

    def test_command_token(self):
        """Other <!...> tokens keep angle brackets around the label or keyword."""
        assert slack_to_irc("<!date^1392734382|Feb 18>") == "<Feb 18>"
        assert slack_to_irc("<!foo>") == "<foo>"

    def test_known_emoji(self):
        """Known emoji shortcodes become glyphs."""
        assert slack_to_irc(":smile: test") == "\U0001f604 test"

    def test_unknown_emoji_unchanged(self):
        """Unknown shortcodes are left as typed."""
        assert slack_to_irc(":unknownemoji: test") == ":unknownemoji: test"

    def test_emoji_table_from_context(self):
        """A context can supply its own emoji table."""
        context = TransformContext(emoji={"party": "P"})
        assert slack_to_irc(":party: :smile:", context) == "P :smile:"

    def test_entities_decoded(self):
        """HTML entities decode once, ampersand last."""
        assert slack_to_irc("a &lt;b&gt; &amp;lt;") == "a <b> &lt;"

    def test_escaped_brackets_are_not_tokens(self):
        """Escaped angle brackets around a URL stay literal."""
        assert slack_to_irc("&lt;https://example.com&gt;") == "<https://example.com>"

    def test_combined_message(self):
        """All rewrites apply together."""
        context = TransformContext(users={"U1": "bob"}, channels={"C1": "dev"})
        text = "<!here> <@U1> see <#C1> and <https://x.io|x.io> :tada:\nthanks &amp; bye"
        assert slack_to_irc(text, context) == "@here @bob see #dev and x.io \U0001f389 thanks & bye"


class TestCollectReferences:
    """Tests for collect_references."""

    def test_collects_in_order_without_duplicates(self):
        users, channels = collect_references("<@U2> <@U1|a> <#C9> <@U2> <#C8|x>")
        assert users == ["U2", "U1"]
        assert channels == ["C9", "C8"]

    def test_ignores_non_references(self):
        assert collect_references("<!channel> <https://x.io> @U1") == ([], [])


class TestEmojiTable:
    """Tests for the packaged emoji table."""

    def test_loads_common_shortcodes(self):
        table = load_emoji_table()
        assert table["+1"] == "\U0001f44d"
        assert table["tada"] == "\U0001f389"
        assert "smile" in table


class TestLinkMentions:
    """Tests for IRC -> Slack mention linking."""

    members = [
        Identity(id="U1", display_name="alice"),
        Identity(id="U2", display_name="al"),
        Identity(id="U3", display_name="bob"),
    ]

    def test_bare_and_at_names(self):
        assert link_mentions("alice: ping @bob", self.members) == "<@U1>: ping <@U3>"

    def test_longest_name_wins(self):
        """'alice' is not split into 'al' + 'ice'."""
        assert link_mentions("hey alice", self.members) == "hey <@U1>"
        assert link_mentions("hey al", self.members) == "hey <@U2>"

    def test_names_inside_words_untouched(self):
        assert link_mentions("bobby and alicex", self.members) == "bobby and alicex"

    def test_names_inside_urls_untouched(self):
        text = "see http://x.org/alice or alice.example.com/bob"
        assert link_mentions(text, self.members) == text

    def test_name_before_punctuation(self):
        assert link_mentions("thanks alice. bob: ping", self.members) == "thanks <@U1>. <@U3>: ping"

    def test_no_members(self):
        assert link_mentions("alice", []) == "alice"


class TestFormatting:
    """Tests for the small formatting helpers."""

    def test_notice_and_action(self):
        assert format_notice("server restarting") == "*server restarting*"
        assert format_action("waves") == "_waves_"

    def test_username_template(self):
        assert apply_username_template("$username (IRC)", "carol") == "carol (IRC)"
        assert apply_username_template("<$username> ", "carol") == "<carol> "
        assert apply_username_template("$username/$username", "x") == "x/x"

    def test_split_relayed_author(self):
        assert split_relayed_author("<dave> hello there") == ("dave", "hello there")
        assert split_relayed_author("no prefix here") is None
        assert split_relayed_author("<dave>no space") is None
