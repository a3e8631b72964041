"""
Pytest configuration and fixtures for slackirc tests.
"""

import asyncio
import tempfile
from collections.abc import AsyncIterator, Generator
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from slackirc.bridge.exceptions import LookupFailed
from slackirc.bridge.models import Identity, OutgoingMessage, Platform, SlackChannel
from slackirc.bridge.protocol import AdapterEvent, NetworkAdapter, WorkspaceAdapter
from slackirc.config import BridgeConfig, deep_merge, parse_config


class FakeSlackAdapter(WorkspaceAdapter):
    """In-memory Slack workspace: users, channels and a record of posts."""

    def __init__(
        self,
        users: dict[str, str],
        channels: list[SlackChannel],
        members: dict[str, list[str]] | None = None,
    ):
        super().__init__()
        self.users = dict(users)
        self.channels = list(channels)
        self.members = members or {}
        self.sent: list[OutgoingMessage] = []
        self.lookups: list[str] = []
        self.send_error: Exception | None = None
        self.send_delay = 0.0
        self.lookup_delay = 0.0
        self.events: asyncio.Queue[AdapterEvent] = asyncio.Queue()

    @property
    def platform(self) -> Platform:
        return Platform.SLACK

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def receive_events(self) -> AsyncIterator[AdapterEvent]:
        while self._running:
            try:
                yield await asyncio.wait_for(self.events.get(), timeout=0.05)
            except asyncio.TimeoutError:
                continue

    async def send_message(self, message: OutgoingMessage) -> str:
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)
        return f"ts.{len(self.sent)}"

    async def lookup_user(self, user_id: str) -> Identity:
        self.lookups.append(user_id)
        if self.lookup_delay:
            await asyncio.sleep(self.lookup_delay)
        if user_id not in self.users:
            raise LookupFailed(f"No such user: {user_id}", platform="slack", reference=user_id)
        return Identity(id=user_id, display_name=self.users[user_id])

    async def lookup_channel(self, channel: str) -> SlackChannel:
        self.lookups.append(channel)
        for candidate in self.channels:
            if channel in (candidate.id, candidate.name):
                return candidate
        raise LookupFailed(f"No such channel: {channel}", platform="slack", reference=channel)

    async def list_channel_members(self, channel_id: str) -> list[str]:
        return list(self.members.get(channel_id, []))


class FakeIrcAdapter(NetworkAdapter):
    """In-memory IRC connection recording messages, joins and raw commands."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[OutgoingMessage] = []
        self.joined: list[str] = []
        self.raw: list[tuple[str, ...]] = []
        self.send_error: Exception | None = None
        self.start_error: Exception | None = None
        self.events: asyncio.Queue[AdapterEvent] = asyncio.Queue()

    @property
    def platform(self) -> Platform:
        return Platform.IRC

    async def start(self) -> None:
        if self.start_error is not None:
            raise self.start_error
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def receive_events(self) -> AsyncIterator[AdapterEvent]:
        while self._running:
            try:
                yield await asyncio.wait_for(self.events.get(), timeout=0.05)
            except asyncio.TimeoutError:
                continue

    async def send_message(self, message: OutgoingMessage) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)
        return ""

    async def join(self, channel: str) -> None:
        self.joined.append(channel)

    async def send_raw(self, *args: str) -> None:
        self.raw.append(args)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_slackirc_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point SLACKIRC_HOME at an empty directory and clear SLACKIRC_* overrides."""
    import os

    for key in list(os.environ):
        if key.startswith("SLACKIRC_"):
            monkeypatch.delenv(key)

    home = temp_dir / ".slackirc"
    home.mkdir()
    monkeypatch.setenv("SLACKIRC_HOME", str(home))
    return home


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """Provide a sample configuration dictionary."""
    return {
        "slack": {
            "token": "xoxb-test",
            "app_token": "xapp-test",
        },
        "irc": {
            "server": "irc.example.org",
            "nickname": "bridgebot",
        },
        "channel_mapping": {
            "#general": "#bridge",
            "#random": "#Random-IRC sekrit",
            "#quiet": "#quiet",
            "privgroup": "#private",
        },
        "command_characters": ["!"],
        "mute_users": {
            "slack": ["muted_slack"],
            "irc": ["muted_irc"],
        },
        "lookups": {
            "timeout": 0.5,
            "dispatch_timeout": 0.5,
        },
    }


@pytest.fixture
def make_config(sample_config: dict[str, Any]):
    """Build a BridgeConfig from the sample config with overrides merged in."""

    def _make(overrides: dict[str, Any] | None = None) -> BridgeConfig:
        return parse_config(deep_merge(sample_config, overrides or {}))

    return _make


@pytest.fixture
def slack_channels() -> list[SlackChannel]:
    """Slack channels of the fake workspace."""
    return [
        SlackChannel(id="C0GENERAL", name="general"),
        SlackChannel(id="C0RANDOM", name="random"),
        SlackChannel(id="C0QUIET", name="quiet", is_member=False),
        SlackChannel(id="C0OFFTOPIC", name="offtopic"),
        SlackChannel(
            id="G0PRIV",
            name="privgroup",
            is_channel=False,
            is_group=True,
            is_private=True,
            is_member=False,
        ),
    ]


@pytest.fixture
def fake_slack(slack_channels: list[SlackChannel]) -> FakeSlackAdapter:
    """Provide a fake Slack workspace adapter."""
    return FakeSlackAdapter(
        users={
            "U0ALICE": "alice",
            "U0BOB": "bob",
            "U0MUTED": "muted_slack",
        },
        channels=slack_channels,
        members={"C0GENERAL": ["U0ALICE", "U0BOB"]},
    )


@pytest.fixture
def fake_irc() -> FakeIrcAdapter:
    """Provide a fake IRC adapter."""
    return FakeIrcAdapter()
