#!/usr/bin/env python
"""Value comparison and display helpers for cached option values.

Table values come back from the database as strings (or ``None`` for SQL
NULL) while cached values may carry any JSON type, so agreement between the
two is judged at two strengths:

- strict: same type and same value;
- loose: equal after the usual scalar coercions (numeric strings against
  numbers, ``None`` against empty values, booleans by truthiness), and as a
  last resort a numeric cached value compared by its string form.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from optcache.utils.config import TRUNCATION_MARKER

__all__ = [
    "ABSENT",
    "Absent",
    "display_value",
    "is_absent",
    "loose_equals",
    "normalize_cached",
    "strict_equals",
    "truncate",
]

_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

UNSET_DISPLAY = "(unset)"
NULL_DISPLAY = "NULL"


class Absent(Enum):
    """Sentinel type for "not found" lookups.

    Kept separate from ``None`` and ``""`` because both are legitimate option
    values.
    """

    ABSENT = "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent.ABSENT


def is_absent(value: Any) -> bool:
    return value is ABSENT


def normalize_cached(value: Any) -> Any:
    """Map the cache miss encoding onto ``ABSENT``.

    The object cache reports a miss as ``False``, so a cached literal ``False``
    is indistinguishable from "not cached" and is treated as such.
    """
    if value is False:
        return ABSENT
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_numeric_string(value: Any) -> bool:
    return isinstance(value, str) and _NUMERIC_STRING.match(value) is not None


def _number_to_string(value: int | float) -> str:
    # 14 significant digits, the default `precision` of PHP's (string) cast,
    # so 0.1 + 0.2 renders as "0.3" rather than its round-trip form
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.14G}"
    return str(value)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def strict_equals(left: Any, right: Any) -> bool:
    """Equal in both type and value (``1 != True`` and ``5 != "5"``)."""
    return type(left) is type(right) and left == right


def _coerced_equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        other = right if left is None else left
        if isinstance(other, str):
            return other == ""
        return not _truthy(other)

    if isinstance(left, bool) or isinstance(right, bool):
        return _truthy(left) == _truthy(right)

    if _is_number(left) and _is_number(right):
        return left == right

    if _is_number(left) or _is_number(right):
        number, text = (left, right) if _is_number(left) else (right, left)
        if not isinstance(text, str):
            return False
        if _is_numeric_string(text):
            return float(text) == number
        return _number_to_string(number) == text

    if _is_numeric_string(left) and _is_numeric_string(right):
        return float(left) == float(right)

    if type(left) is type(right):
        return left == right

    return False


def loose_equals(cached: Any, stored: Any) -> bool:
    """Check whether a cached value equals a table value after coercion.

    Tries strict equality, then type-coerced equality, then (for numeric
    cached values) a comparison of the cached value's string form.

    Args:
        cached: Value read from a cache bucket
        stored: Value read from the options table

    Returns:
        True if the values agree at any of the three strengths
    """
    if cached is ABSENT or stored is ABSENT:
        return False
    if strict_equals(cached, stored):
        return True
    if _coerced_equals(cached, stored):
        return True
    return _is_number(cached) and _number_to_string(cached) == stored


def display_value(value: Any) -> str:
    """Render a table or cache value as a single display string."""
    if value is ABSENT:
        return UNSET_DISPLAY
    if value is None:
        return NULL_DISPLAY
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return _number_to_string(value)
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(value)


def truncate(text: str, limit: int, marker: str = TRUNCATION_MARKER) -> str:
    """Cut ``text`` to ``limit`` characters, appending ``marker`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + marker
