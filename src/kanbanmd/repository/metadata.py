"""Metadata lookups for card filtering."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def get_nested_value(data: Mapping[str, Any], path: str) -> Any:
    """Resolve a dot-separated path such as ``links.jira``; None if missing."""
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def matches_meta_filter(metadata: Mapping[str, Any] | None, meta_filter: Mapping[str, str]) -> bool:
    """Whether card metadata satisfies every filter entry.

    Each entry maps a dot path to a substring; matching is case-insensitive
    and all entries must match. Cards without metadata never match.
    """
    if not metadata:
        return False
    for path, needle in meta_filter.items():
        value = get_nested_value(metadata, path)
        if value is None:
            return False
        if needle.lower() not in _as_text(value).lower():
            return False
    return True
