"""
Configuration loader for slackirc.

The bridge configuration is assembled from up to three layers, later ones
winning: the global file in the slackirc home, an explicit --config file, and
SLACKIRC_* environment variables. The merged mapping is validated into a
BridgeConfig, and every failure surfaces as a ConfigurationError.
"""

import os
from pathlib import Path
from typing import Any, Literal, get_args, get_origin

import yaml
from pydantic import BaseModel, ValidationError

from slackirc.config.merger import merge_configs, set_nested_value
from slackirc.config.schema import BridgeConfig
from slackirc.storage.paths import get_global_config_path

ENV_PREFIX = "SLACKIRC_"

# Pydantic error types that mean "required value absent or empty"
_MISSING_ERROR_TYPES = {"missing", "string_too_short", "too_short"}


class ConfigurationError(Exception):
    """A configuration file is unreadable, or a field is missing or invalid."""


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Read one configuration layer.

    A missing or empty file is an empty layer. Anything other than a mapping
    at the top level is rejected.

    Raises:
        ConfigurationError: On unreadable files and YAML syntax errors.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Top level of {path} must be a mapping")
    return content


def save_yaml_file(path: Path, config: dict[str, Any]) -> None:
    """Write a configuration mapping, keeping key order and unicode channel names."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot write {path}: {e}") from e


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay SLACKIRC_<SECTION>__<KEY> variables onto config, in place.

    Double underscores mark nesting so keys that contain underscores survive:
    SLACKIRC_SLACK__APP_TOKEN sets slack.app_token and
    SLACKIRC_IRC__STATUS_NOTICES__JOIN=true sets irc.status_notices.join.
    """
    for key, value in os.environ.items():
        # SLACKIRC_HOME is read by storage.paths
        if not key.startswith(ENV_PREFIX) or key == "SLACKIRC_HOME":
            continue

        config_key = key[len(ENV_PREFIX) :].lower().replace("__", ".")
        set_nested_value(config, config_key, _coerce_env_value(config_key, value))

    return config


def _field_annotation(config_key: str) -> Any:
    """Type annotation of the BridgeConfig field at a dotted path, or None."""
    model: type[BaseModel] | None = BridgeConfig
    annotation: Any = None
    for part in config_key.split("."):
        field = model.model_fields.get(part) if model is not None else None
        if field is None:
            return None
        annotation = field.annotation
        is_model = isinstance(annotation, type) and issubclass(annotation, BaseModel)
        model = annotation if is_model else None
    return annotation


def _coerce_env_value(config_key: str, value: str) -> Any:
    """
    Shape an environment string for the field it overrides.

    List fields take comma-separated items and avatar_url takes "false" to
    disable avatars. Everything else stays a string so pydantic coerces it
    against the field type; a numeric token or a comma in a display format
    is never mangled.
    """
    annotation = _field_annotation(config_key)
    if get_origin(annotation) is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    accepts_false = any(
        get_origin(arg) is Literal and False in get_args(arg) for arg in get_args(annotation)
    )
    if accepts_false and value.lower() in ("false", "no", "off"):
        return False
    return value


def _describe_validation_error(error: ValidationError) -> str:
    """Turn a pydantic ValidationError into one line per offending field."""
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"])
        if item["type"] in _MISSING_ERROR_TYPES:
            problems.append(f"Missing configuration field {field}")
        else:
            problems.append(f"Invalid configuration field {field}: {item['msg']}")
    return "; ".join(problems)


def parse_config(data: dict[str, Any]) -> BridgeConfig:
    """Validate a merged configuration mapping into a BridgeConfig."""
    try:
        return BridgeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(_describe_validation_error(e)) from e


def load_config(
    config_path: Path | None = None,
    skip_global: bool = False,
    skip_env: bool = False,
) -> BridgeConfig:
    """
    Build the bridge configuration from every layer.

    Args:
        config_path: Explicit file merged over the global one; must exist.
        skip_global: Ignore $SLACKIRC_HOME/config.yaml.
        skip_env: Ignore SLACKIRC_* variables.

    Raises:
        ConfigurationError: If a layer cannot be read or the result is invalid.
    """
    layers: list[dict[str, Any]] = []

    if not skip_global:
        layers.append(load_yaml_file(get_global_config_path()))

    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        layers.append(load_yaml_file(config_path))

    config_dict = merge_configs(*layers)
    if not skip_env:
        apply_env_overrides(config_dict)

    return parse_config(config_dict)
