"""Platform adapter implementations."""

from slackirc.bridge.adapters.slack import SlackAdapter

__all__ = [
    "SlackAdapter",
]
