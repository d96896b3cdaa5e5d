"""Cascading merge of configuration layers.

System, user, and project YAML files plus environment overrides are merged
in order, later layers winning.
"""

from __future__ import annotations

from typing import Any


def normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy with ``kebab-case`` keys rewritten to ``snake_case``.

    Applied recursively to nested mappings so ``nested-agent-tools`` and
    ``nested_agent_tools`` land on the same field.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(key, str):
            key = key.replace("-", "_")
        if isinstance(value, dict):
            value = normalize_keys(value)
        result[key] = value
    return result


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` onto ``base`` without mutating either.

    Mappings merge key by key, lists and scalars are replaced, and a None in
    ``override`` leaves the base value in place.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers in priority order (later overrides earlier)."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, normalize_keys(layer))
    return merged
