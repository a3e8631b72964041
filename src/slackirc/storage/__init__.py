"""Storage path helpers for slackirc."""

from slackirc.storage.paths import get_global_config_path, get_slackirc_home

__all__ = ["get_global_config_path", "get_slackirc_home"]
