"""Normalization helpers.

Centralizes defensive parsing of backend column values.
"""

from __future__ import annotations

import json
import math
from typing import Any

# Placeholder strings that end up in text columns when the site stores
# "nothing" through a form or a JS template literal.
PLACEHOLDERS = frozenset({"", "null", "undefined", "{}"})


def is_placeholder(value: Any) -> bool:
    return isinstance(value, str) and value.strip() in PLACEHOLDERS


def safe_float(value: Any) -> float | None:
    if value is None or is_placeholder(value) or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return None if text.strip() in PLACEHOLDERS else text


def safe_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "t", "yes", "y"}:
        return True
    if normalized in {"0", "false", "f", "no", "n"}:
        return False
    return default


def str_list(value: Any) -> list[str]:
    """Coerce an array column to ``list[str]``.

    Postgres arrays arrive as JSON lists; legacy rows sometimes hold a JSON
    encoded string or a single bare value instead.
    """
    if value is None or is_placeholder(value):
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                return [text]
            return str_list(decoded)
        return [text]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and not is_placeholder(item)]
    return [str(value)]
