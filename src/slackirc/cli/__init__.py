"""CLI package for slackirc."""

from slackirc.cli.app import app

__all__ = ["app"]
