"""Data payload normalization for the provider's string-only data channel."""

import json
from collections.abc import Mapping
from typing import Any

# Values accepted at the boundary: str, number, bool, null or structured JSON.
PayloadValue = str | int | float | bool | None | list[Any] | dict[str, Any]


def normalize_value(value: PayloadValue) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def normalize_payload(data: Mapping[str, PayloadValue] | None) -> dict[str, str]:
    """Coerce every payload value to a string.

    Strings pass through unchanged; anything else becomes its compact JSON
    text, e.g. ``{"type": "chat", "count": 3}`` -> ``{"type": "chat", "count": "3"}``.
    """
    return {str(k): normalize_value(v) for k, v in (data or {}).items()}
