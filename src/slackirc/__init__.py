"""
slackirc - Slack <-> IRC bridge

Relays messages between mapped Slack and IRC channels, rewriting mentions,
emoji shortcodes and markup for the destination platform.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("slackirc")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
