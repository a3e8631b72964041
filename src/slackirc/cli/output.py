"""
Console output for the slackirc CLI.

Status lines share one glyph convention; bridge-specific views (the channel
mapping table, the config summary) live here so commands stay thin.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from slackirc.bridge.channel_map import ChannelMap
from slackirc.config.schema import BridgeConfig

# Global console instance
console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    # Error text may contain brackets from config values
    console.print(f"[red]✗[/red] {escape(message)}", highlight=False)


def print_warning(message: str) -> None:
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]i[/blue] {message}")


def print_channel_map(channel_map: ChannelMap) -> None:
    """Render the Slack -> IRC mapping, flagging channels joined with a key."""
    table = Table(title="Channel mapping")
    table.add_column("Slack channel", style="cyan")
    table.add_column("IRC channel", style="magenta")
    table.add_column("Key")

    for (slack_channel, irc_channel), target in zip(channel_map.items(), channel_map.join_targets):
        table.add_row(slack_channel, irc_channel, "yes" if len(target.split()) > 1 else "")

    console.print(table)


def print_config_summary(config: BridgeConfig) -> None:
    """Print the relay policy that is not visible in the mapping table."""
    notices = [name for name, enabled in config.irc.status_notices.model_dump().items() if enabled]
    avatar = config.avatar_template() or "disabled"

    print_info(f"IRC: {config.irc.nickname} on {config.irc.server}")
    print_info(f"Slack display name: {config.slack.username_format}, avatar: {avatar}")
    print_info(f"Status notices: {', '.join(notices) or 'off'}")
    if config.command_characters:
        print_info(f"Command characters: {' '.join(config.command_characters)}")
    for platform, names in (("Slack", config.mute_users.slack), ("IRC", config.mute_users.irc)):
        if names:
            print_info(f"Muted {platform} users: {', '.join(names)}")
