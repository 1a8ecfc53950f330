from __future__ import annotations

from typing import Any

_LIST_KEYS = ("rows", "items", "data")


def normalize_rows(payload: Any, *keys: str) -> list[Any]:
    """Accept a bare JSON array or an object wrapping it under a known key."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (*keys, *_LIST_KEYS):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def to_quantity(value: Any) -> int:
    """Quantities that are missing or not numeric count as zero."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
