"""Numeric recognition and coercion for spreadsheet cell values.

Spreadsheet exports mix native numbers with formatted strings such as
"$1,234.50" or "12%". Recognition decides whether a cell should be treated as
a number; coercion turns a cell into the float used by chart series.
"""

from __future__ import annotations

import math
import re

_STRIP_PATTERN = re.compile(r"[,$%\s]")
_DECIMAL_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _strip_formatting(value: str) -> str:
    """Remove thousands separators, currency/percent signs and whitespace."""

    return _STRIP_PATTERN.sub("", value)


def is_empty_value(value: object) -> bool:
    """Return True for cells that carry no value (None or empty string)."""

    return value is None or value == ""


def is_numeric_value(value: object) -> bool:
    """Return whether a raw cell value can be treated as a number.

    Args:
        value: Raw cell value (number, string, or empty).

    Returns:
        True for finite native numbers and for strings that are plain ASCII
        decimal or exponent literals once formatting characters are stripped.
    """

    if is_empty_value(value):
        return False
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        cleaned = _strip_formatting(value)
        if _DECIMAL_PATTERN.fullmatch(cleaned) is None:
            return False
        return math.isfinite(float(cleaned))
    return False


def coerce_numeric(value: object, *, missing: float | None = 0.0) -> float | None:
    """Coerce a raw cell value into a float for chart series.

    Args:
        value: Raw cell value.
        missing: Substitute returned when the value is not numeric. Defaults
            to 0.0, which matches previously exported charts; pass None to keep
            missing cells distinguishable from genuine zeros.

    Returns:
        The parsed float, or `missing` when recognition fails.
    """

    if not is_numeric_value(value):
        return missing
    if isinstance(value, str):
        return float(_strip_formatting(value))
    return float(value)  # type: ignore[arg-type]
