"""Shared utility functions used across UglyBaby modules."""
from __future__ import annotations

import json
import logging
import re
from typing import Any

log = logging.getLogger(__name__)

_MISSING = object()


def json_parse(value: str | None, default: Any = _MISSING) -> Any:
    """Safely parse a JSON string, returning *default* on failure.

    If no default is given, returns ``{}`` on parse error.
    """
    try:
        return json.loads(value or "")
    except (json.JSONDecodeError, TypeError):
        return {} if default is _MISSING else default


def safe_text(value: Any) -> str:
    """Coerce AI-generated tool output to a string.

    Models occasionally emit ``{"text": "..."}`` where a string was asked for;
    the inner text is used.  Other objects become ``""``.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, (bool, int, float)):
        return str(value)
    if isinstance(value, dict):
        inner = value.get("text")
        if isinstance(inner, str):
            return inner
        log.warning("Expected text, got object with keys %s", sorted(value)[:5])
        return ""
    return str(value)


def safe_array(value: Any) -> list:
    if isinstance(value, list):
        return value
    if value is not None:
        log.warning("Expected list, got %s", type(value).__name__)
    return []


_NUMBER_STRIP_RE = re.compile(r"[€$£¥₹,\s]")
_SUFFIX_MULTIPLIER = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def safe_number(value: Any, default: float | None = 0.0) -> float | None:
    """Parse numbers that may arrive as strings like ``"€25,000"`` or ``"1.5M"``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return default
    lower = value.strip().lower()
    if not lower or lower == "unknown" or "not " in lower or "n/a" in lower:
        return default
    cleaned = _NUMBER_STRIP_RE.sub("", lower)
    multiplier = 1
    if cleaned[-1:] in _SUFFIX_MULTIPLIER:
        multiplier = _SUFFIX_MULTIPLIER[cleaned[-1]]
        cleaned = cleaned[:-1]
    try:
        return float(cleaned) * multiplier
    except ValueError:
        return default
