"""Tests for numeric recognition and coercion of spreadsheet cells."""

from __future__ import annotations

import pytest

from analysis.coercion import coerce_numeric, is_empty_value, is_numeric_value

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("value", [42, 3.5, "1,200", "$1,234.50", "12%", " 7 ", "-0.5", "1e3"])
def test_is_numeric_value_accepts_numbers_and_formatted_strings(value: object) -> None:
    """Recognize native numbers and strings that parse once formatting is stripped."""

    assert is_numeric_value(value) is True


@pytest.mark.parametrize("value", [None, "", "   ", "abc", "12abc", "$", True, float("nan"), float("inf"), "inf"])
def test_is_numeric_value_rejects_text_empty_and_non_finite(value: object) -> None:
    """Reject empty cells, text, booleans, and non-finite values."""

    assert is_numeric_value(value) is False


def test_coerce_numeric_strips_formatting() -> None:
    """Strip currency, percent, separators, and whitespace before parsing."""

    assert coerce_numeric("$1,234.50") == 1234.5
    assert coerce_numeric("12%") == 12.0
    assert coerce_numeric(" 3 ") == 3.0
    assert coerce_numeric(7) == 7.0


def test_coerce_numeric_substitutes_zero_for_missing_by_default() -> None:
    """Map non-numeric cells to 0.0 unless another substitute is requested."""

    assert coerce_numeric("") == 0.0
    assert coerce_numeric("n/a") == 0.0
    assert coerce_numeric(None) == 0.0


def test_coerce_numeric_can_keep_missing_cells_distinct() -> None:
    """Return None for non-numeric cells when missing=None."""

    assert coerce_numeric("", missing=None) is None
    assert coerce_numeric("n/a", missing=None) is None
    assert coerce_numeric("0", missing=None) == 0.0


def test_is_empty_value_only_matches_none_and_empty_string() -> None:
    """Treat only None and "" as empty; zero is a value."""

    assert is_empty_value(None) is True
    assert is_empty_value("") is True
    assert is_empty_value(0) is False
    assert is_empty_value(" ") is False


@pytest.mark.parametrize("value", ["2023_01", "1_000", "١٢٣", "０１", "0x10", "1e", "."])
def test_is_numeric_value_only_accepts_ascii_decimal_literals(value: str) -> None:
    """Reject underscores, non-ASCII digits and other non-decimal literals."""

    assert is_numeric_value(value) is False
    assert coerce_numeric(value) == 0.0


def test_period_code_column_is_text() -> None:
    """Classify a column of underscore period codes as text."""

    from analysis.columns import infer_column_type

    rows = [{"Period": f"2023_{month:02d}"} for month in range(1, 11)]
    assert infer_column_type(rows, "Period") == "text"
