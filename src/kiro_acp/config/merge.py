"""Deep merge for layered configuration.

Later layers win. Nested sections merge key by key so a project file can
override a single kiro setting without restating the rest.
"""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    - Nested dicts are merged recursively
    - Lists and scalars from ``override`` replace the base value
    - ``None`` in ``override`` leaves the base value alone

    Neither argument is modified.
    """
    result = dict(base)

    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value

    return result


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Fold config layers left to right (lowest priority first)."""
    result: dict[str, Any] = {}
    for layer in layers:
        if layer:
            result = deep_merge(result, layer)
    return result
