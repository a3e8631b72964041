"""
Path utilities for slackirc.

Provides consistent path resolution for configuration files.
"""

import os
from pathlib import Path


def get_slackirc_home() -> Path:
    """
    Get the slackirc home directory.

    Resolution order:
    1. SLACKIRC_HOME environment variable
    2. Default: ~/.slackirc

    Returns:
        Path to the slackirc home directory.
    """
    env_home = os.environ.get("SLACKIRC_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".slackirc"


def get_global_config_path() -> Path:
    """
    Get the path to the global configuration file.

    Returns:
        Path to ~/.slackirc/config.yaml
    """
    return get_slackirc_home() / "config.yaml"
