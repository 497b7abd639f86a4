"""
NovaBase — Utilities

Timing, list helpers and lenient parsers for values that arrive as strings
(query parameters, headers, form fields).

Parsers raise ValueError with a caller-presentable message; pair them with
validate.inputs.from_error() to turn a parse failure into a 402.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

T = TypeVar("T")

_INT_RE = re.compile(r"^[-+]?[0-9]+$")
_NUM_RE = re.compile(r"^[-+]?[0-9]+(?:\.[0-9]+)?$")


# ─── Timer ────────────────────────────────────────────────────────


def since(start: float) -> int:
    """Milliseconds elapsed since a time.perf_counter() reading."""
    return int((time.perf_counter() - start) * 1000)


# ─── Lists ────────────────────────────────────────────────────────


def clean_list(items: Sequence[T | None] | None) -> list[T] | None:
    """Drop None entries. Returns None for a None source."""
    if items is None:
        return None
    return [item for item in items if item is not None]


def lists_equal(
    a: Sequence[T] | None,
    b: Sequence[T] | None,
    strict: bool = True,
    comparator: Callable[[T, T], bool] | None = None,
) -> bool:
    """
    Compare two sequences.

    strict=True compares position by position; strict=False only requires
    every element of `a` to have a match somewhere in `b` (lengths must still
    agree).
    """
    if a is b:
        return True
    if a is None or b is None:
        return False
    if len(a) != len(b):
        return False

    same = comparator or (lambda x, y: x == y)
    if strict:
        return all(same(x, y) for x, y in zip(a, b))
    return all(any(same(x, y) for y in b) for x in a)


# ─── Parsers ──────────────────────────────────────────────────────


def _check_bounds(num: float, min_value: float | None, max_value: float | None) -> None:
    if min_value is not None and num < min_value:
        raise ValueError(f"value cannot be smaller than {min_value}")
    if max_value is not None and num > max_value:
        raise ValueError(f"value cannot be greater than {max_value}")


def parse_int(value: Any, min_value: int | None = None, max_value: int | None = None) -> int:
    if isinstance(value, str):
        value = value.strip()
        if not _INT_RE.match(value):
            raise ValueError(f"'{value}' is not a valid integer")
        num = int(value, 10)
    elif isinstance(value, bool):
        raise ValueError(f"'{value}' is not a valid integer")
    elif isinstance(value, int):
        num = value
    elif isinstance(value, float) and value.is_integer():
        num = int(value)
    else:
        raise ValueError(f"'{value}' is not a valid integer")

    _check_bounds(num, min_value, max_value)
    return num


def parse_number(
    value: Any,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    if isinstance(value, str):
        value = value.strip()
        if not _NUM_RE.match(value):
            raise ValueError(f"'{value}' is not a valid number")
        num = float(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        num = float(value)
    else:
        raise ValueError(f"'{value}' is not a valid number")

    _check_bounds(num, min_value, max_value)
    return num


def parse_boolean(value: Any, strict: bool = True) -> bool:
    if not strict:
        return bool(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise ValueError(f"'{lowered}' is not a valid boolean")
    raise ValueError(f"'{value}' is not a valid boolean")


def parse_date(value: Any) -> datetime:
    """
    Parse a datetime from an ISO-8601 string, a millisecond epoch (int or
    digit string), or pass a datetime through unchanged.
    """
    if isinstance(value, datetime):
        return value
    try:
        if isinstance(value, str):
            value = value.strip()
            if _INT_RE.match(value):
                return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass
    raise ValueError(f"'{value}' is not a valid date")


def parse_string(
    value: Any,
    min_length: int | None = None,
    max_length: int | None = None,
) -> str | None:
    """Trim a string; empty input is None unless min_length demands a value."""
    if value is None:
        if min_length:
            raise ValueError("value is missing")
        return None
    if value == "":
        if min_length:
            raise ValueError(f"value must be at least {min_length} characters long")
        return None
    if not isinstance(value, str):
        raise ValueError(f"value '{value}' is not a string")

    value = value.strip()
    if min_length and len(value) < min_length:
        raise ValueError(f"value must be at least {min_length} characters long")
    if max_length and len(value) > max_length:
        raise ValueError(f"value can be at most {max_length} characters long")
    return value or None
