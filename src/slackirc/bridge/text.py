"""
Text rewriting between Slack markup and IRC plain text.

Slack -> IRC is an ordered sequence of independent regex passes. Order
matters: entity decoding runs last so the literal angle brackets of Slack
tokens are still distinguishable from escaped ones while earlier passes run.
All functions here are pure; lookups happen beforehand and arrive through
TransformContext.
"""

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources

from slackirc.bridge.models import Identity

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")
_BROADCAST = re.compile(r"<!(channel|group|everyone|here)(?:\|[^>]*)?>")
_CHANNEL_REF = re.compile(r"<#([CGD]\w+)(?:\|([^>]*))?>")
_USER_REF = re.compile(r"<@([UW]\w+)(?:\|([^>]*))?>")
_LINK = re.compile(r"<(?!!)([^|>]+)(?:\|([^>]+))?>")
_COMMAND = re.compile(r"<!([^|>]+)(?:\|([^>]+))?>")
_EMOJI = re.compile(r":([\w+-]+):")
_ENTITIES = (("&lt;", "<"), ("&gt;", ">"), ("&amp;", "&"))

_RELAYED_AUTHOR = re.compile(r"^<(.+?)> ")


@lru_cache(maxsize=1)
def load_emoji_table() -> dict[str, str]:
    """Load the static shortcode -> glyph table shipped with the package."""
    raw = resources.files("slackirc.bridge").joinpath("emoji.json").read_text(encoding="utf-8")
    return json.loads(raw)


@dataclass(frozen=True)
class TransformContext:
    """Pre-resolved names available to the Slack -> IRC transform."""

    users: Mapping[str, str] = field(default_factory=dict)  # user ID -> name
    channels: Mapping[str, str] = field(default_factory=dict)  # channel ID -> name
    emoji: Mapping[str, str] = field(default_factory=load_emoji_table)


def collect_references(text: str) -> tuple[list[str], list[str]]:
    """Find the user and channel IDs a Slack message references.

    Returns:
        (user_ids, channel_ids), each deduplicated in order of appearance
    """
    user_ids = list(dict.fromkeys(m.group(1) for m in _USER_REF.finditer(text)))
    channel_ids = list(dict.fromkeys(m.group(1) for m in _CHANNEL_REF.finditer(text)))
    return user_ids, channel_ids


def _reference(sigil: str, resolved: str | None, label: str | None, raw_id: str) -> str:
    """Render a reference with resolved name > label > raw ID precedence."""
    name = resolved or (label.lstrip(sigil) if label else None) or raw_id
    return f"{sigil}{name}"


def _decode_entities(text: str) -> str:
    for entity, literal in _ENTITIES:
        text = text.replace(entity, literal)
    return text


def slack_to_irc(text: str, context: TransformContext | None = None) -> str:
    """Rewrite Slack message markup into IRC plain text.

    Args:
        text: Raw Slack message text
        context: Resolved names and emoji table (defaults: nothing resolved)

    Returns:
        Text ready to send to IRC
    """
    ctx = context or TransformContext()

    text = _LINE_BREAKS.sub(" ", text)
    text = _BROADCAST.sub(lambda m: f"@{m.group(1)}", text)
    text = _CHANNEL_REF.sub(
        lambda m: _reference("#", ctx.channels.get(m.group(1)), m.group(2), m.group(1)), text
    )
    text = _USER_REF.sub(
        lambda m: _reference("@", ctx.users.get(m.group(1)), m.group(2), m.group(1)), text
    )
    text = _LINK.sub(lambda m: m.group(2) or m.group(1), text)
    text = _COMMAND.sub(lambda m: f"<{m.group(2) or m.group(1)}>", text)
    text = _EMOJI.sub(lambda m: ctx.emoji.get(m.group(1), m.group(0)), text)
    return _decode_entities(text)


# =============================================================================
# IRC -> Slack
# =============================================================================


def link_mentions(text: str, members: Iterable[Identity]) -> str:
    """Turn nicks of Slack channel members into Slack mentions.

    Both "@alice" and a bare "alice" become "<@U123>". Longer names win over
    names they contain, and each position is rewritten at most once. Names
    that are part of a URL, host name or path are left alone.
    """
    names = {m.display_name: m.id for m in members if m.display_name}
    if not names:
        return text

    alternatives = "|".join(re.escape(name) for name in sorted(names, key=len, reverse=True))
    pattern = re.compile(rf"(?<![\w@<|/.:])@?({alternatives})(?![\w>]|[./]\w)")
    return pattern.sub(lambda m: f"<@{names[m.group(1)]}>", text)


def format_notice(text: str) -> str:
    """Render an IRC NOTICE as Slack bold text."""
    return f"*{text}*"


def format_action(text: str) -> str:
    """Render an IRC ACTION as Slack italic text."""
    return f"_{text}_"


def apply_username_template(template: str, username: str) -> str:
    """Substitute every $username placeholder."""
    return template.replace("$username", username)


def split_relayed_author(text: str) -> tuple[str, str] | None:
    """Split "<nick> message" as sent by other relay bots.

    Returns:
        (nick, message), or None if the text does not carry a nick prefix
    """
    match = _RELAYED_AUTHOR.match(text)
    if not match:
        return None
    return match.group(1), text[match.end() :]
