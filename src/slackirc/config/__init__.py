"""
Configuration system for slackirc.

This package provides:
- Pydantic schema for configuration validation
- YAML file loading with environment overrides
- Deep merge with +/- list operations
"""

from slackirc.config.loader import (
    ConfigurationError,
    apply_env_overrides,
    load_config,
    load_yaml_file,
    parse_config,
    save_yaml_file,
)
from slackirc.config.merger import deep_merge, merge_configs, set_nested_value
from slackirc.config.schema import (
    BridgeConfig,
    IrcConfig,
    LookupConfig,
    MuteUsersConfig,
    RateLimitConfig,
    SlackConfig,
    StatusNoticesConfig,
)

__all__ = [
    # Schema
    "BridgeConfig",
    "IrcConfig",
    "LookupConfig",
    "MuteUsersConfig",
    "RateLimitConfig",
    "SlackConfig",
    "StatusNoticesConfig",
    # Loader
    "ConfigurationError",
    "apply_env_overrides",
    "load_config",
    "load_yaml_file",
    "parse_config",
    "save_yaml_file",
    # Merger
    "deep_merge",
    "merge_configs",
    "set_nested_value",
]
