"""
Main Typer application for slackirc CLI.

Usage:
    slackirc init [--force]
    slackirc check [--config PATH]
    slackirc transform "Hello <!channel> :smile:"
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from slackirc import __version__
from slackirc.bridge.channel_map import ChannelMap
from slackirc.bridge.text import slack_to_irc
from slackirc.cli.output import (
    console,
    print_channel_map,
    print_config_summary,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from slackirc.config import ConfigurationError, load_config
from slackirc.config.setup import create_default_config

# Create the main Typer app
app = typer.Typer(
    name="slackirc",
    help="Bridge messages between Slack channels and IRC channels.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"slackirc version [green]{__version__}[/green]")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]slackirc[/bold blue] - Slack <-> IRC bridge
    """
    _setup_logging(verbose)


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            help="Where to write the config (default: ~/.slackirc/config.yaml).",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a sample configuration file."""
    created = create_default_config(path, overwrite=force)
    if created is None:
        print_warning("Config file already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    print_success(f"Created config file: {created}")
    print_info("Fill in the Slack tokens, IRC server and channel mapping.")


@app.command()
def check(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file to check (merged over the global config).",
        ),
    ] = None,
) -> None:
    """Validate the configuration and show the channel mapping."""
    try:
        bridge_config = load_config(config)
        channel_map = ChannelMap(bridge_config.channel_mapping)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_channel_map(channel_map)
    print_config_summary(bridge_config)

    if not bridge_config.slack.app_token:
        print_warning("slack.app_token is not set; Socket Mode needs an app-level token")

    print_success(
        f"Configuration is valid: {len(channel_map)} channels bridged "
        f"between Slack and {bridge_config.irc.server}"
    )


@app.command()
def transform(
    text: Annotated[
        str,
        typer.Argument(help="Raw Slack message text."),
    ],
) -> None:
    """Show how a Slack message reads on IRC (IDs are not resolved)."""
    typer.echo(slack_to_irc(text))


if __name__ == "__main__":
    app()
