"""
Layered configuration merging.

Later layers (global file, explicit file, environment) override earlier ones.
A key prefixed with '+' or '-' edits a list instead of replacing it, so an
override file can add one nick to mute_users.irc without repeating the rest.
"""

from typing import Any


def _edit_list(current: Any, op: str, items: list[Any]) -> list[Any] | None:
    """Apply a '+' (append missing) or '-' (remove) edit to a list value."""
    if not isinstance(current, list):
        return list(items) if op == "+" else None
    if op == "+":
        return current + [item for item in items if item not in current]
    return [item for item in current if item not in items]


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge override into a copy of base.

    - Nested mappings merge key by key; channel_mapping entries accumulate.
    - Lists and scalars are replaced.
    - "+key: [...]" appends the items not already present.
    - "-key: [...]" removes the items.
    - "key: null" deletes the key.

    Example:
        >>> deep_merge({"mute_users": {"irc": ["spambot"]}},
        ...            {"mute_users": {"+irc": ["chanserv"]}})
        {'mute_users': {'irc': ['spambot', 'chanserv']}}
    """
    merged = dict(base)

    for key, value in override.items():
        op, name = key[:1], key[1:]
        if op in ("+", "-") and isinstance(value, list):
            edited = _edit_list(merged.get(name), op, value)
            if edited is not None:
                merged[name] = edited
        elif value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Fold configuration layers left to right; empty layers are skipped."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Set a value at a dotted path ("irc.status_notices.join"), in place.

    Missing or non-mapping intermediate values are replaced with empty dicts.
    """
    *parents, leaf = key_path.split(".")
    node = config
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child

    node[leaf] = value
    return config
