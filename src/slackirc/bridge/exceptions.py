"""
Bridge exceptions for slackirc.

ConfigurationError lives with the config loader and is re-exported here so
callers can catch every bridge failure from one module.
"""

from slackirc.config.loader import ConfigurationError


class BridgeError(Exception):
    """Base exception for bridge errors."""

    def __init__(self, message: str, platform: str | None = None):
        super().__init__(message)
        self.platform = platform


class LookupFailed(BridgeError):
    """A user or channel lookup failed or found no match.

    Raised by platform adapters. The identity resolver converts it into an
    unresolved result; it never aborts the relay pipeline.
    """

    def __init__(self, message: str, platform: str | None = None, reference: str | None = None):
        super().__init__(message, platform)
        self.reference = reference


class DispatchFailure(BridgeError):
    """An outbound send was rejected or timed out."""

    def __init__(self, message: str, platform: str | None = None, channel: str | None = None):
        super().__init__(message, platform)
        self.channel = channel


class FatalTransportFailure(BridgeError):
    """A platform connection exhausted its own retry policy."""

    pass


__all__ = [
    "BridgeError",
    "ConfigurationError",
    "DispatchFailure",
    "FatalTransportFailure",
    "LookupFailed",
]
