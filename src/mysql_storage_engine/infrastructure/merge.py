"""Deep merge for option mappings.

Nested mappings are merged key by key with the override winning. Lists and
every other value type are replaced wholesale, never concatenated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def merge_no_array(base: Mapping[str, Any], override: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Merge ``override`` onto ``base`` without concatenating lists.

    Args:
        base: Default values
        override: Caller-supplied values (may be None)

    Returns:
        A new dict; neither input is mutated
    """
    merged: dict[str, Any] = {key: _copy(value) for key, value in base.items()}
    if not override:
        return merged

    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_no_array(current, value)
        else:
            merged[key] = _copy(value)
    return merged


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return merge_no_array(value, None)
    if isinstance(value, list):
        return list(value)
    return value
