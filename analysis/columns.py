"""Dataset schema and column type inference.

A Dataset is read-only input produced by an external spreadsheet parser. Its
schema (ordered column names with an inferred semantic type) is derived once
when the dataset is loaded and is never re-evaluated per row afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from .coercion import is_empty_value, is_numeric_value

ColumnType = Literal["number", "text"]

TYPE_SAMPLE_SIZE = 10
NUMERIC_RATIO_THRESHOLD = 0.7


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """Inferred description of a single dataset column.

    Args:
        name: Column name (taken from the first record).
        type: Inferred semantic type, "number" or "text".
        sample: Raw value of this column in the first record.
    """

    name: str
    type: ColumnType
    sample: object = None

    @property
    def is_numeric(self) -> bool:
        """Return True when the column was inferred as numeric."""

        return self.type == "number"


def infer_column_type(
    rows: Iterable[Mapping[str, object]],
    column: str,
    *,
    sample_size: int = TYPE_SAMPLE_SIZE,
) -> ColumnType:
    """Classify a column as numeric or textual from its leading rows.

    Args:
        rows: Dataset rows in source order.
        column: Column name to classify.
        sample_size: Number of leading rows to inspect.

    Returns:
        "number" when more than 70% of the non-empty sampled values are
        numeric, otherwise "text". Columns with no non-empty samples are text.
    """

    numeric_count = 0
    total_count = 0
    for index, row in enumerate(rows):
        if index >= sample_size:
            break
        value = row.get(column)
        if is_empty_value(value):
            continue
        total_count += 1
        if is_numeric_value(value):
            numeric_count += 1
    if total_count > 0 and numeric_count / total_count > NUMERIC_RATIO_THRESHOLD:
        return "number"
    return "text"


def describe_columns(rows: tuple[Mapping[str, object], ...]) -> tuple[ColumnDescriptor, ...]:
    """Derive ordered column descriptors from dataset rows.

    Column names come from the first record only; later records are assumed to
    share them.
    """

    if not rows:
        return ()
    first = rows[0]
    return tuple(
        ColumnDescriptor(name=str(name), type=infer_column_type(rows, name), sample=first.get(name))
        for name in first.keys()
    )


@dataclass(frozen=True, slots=True)
class Dataset:
    """Rows of a parsed spreadsheet plus the schema derived at load time.

    Args:
        rows: Records in source order. Row order is significant: every derived
            series stays index-aligned with it.
        columns: Ordered column descriptors.
        file_name: Name of the source file, kept as chart provenance.
    """

    rows: tuple[Mapping[str, object], ...]
    columns: tuple[ColumnDescriptor, ...]
    file_name: str = ""

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]], *, file_name: str = "") -> Dataset:
        """Build a Dataset, inferring the column schema once."""

        rows = tuple(dict(record) for record in records)
        return cls(rows=rows, columns=describe_columns(rows), file_name=file_name)

    @property
    def row_count(self) -> int:
        """Return the number of rows."""

        return len(self.rows)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return column names in schema order."""

        return tuple(column.name for column in self.columns)

    def column(self, name: str) -> ColumnDescriptor | None:
        """Return the descriptor for a column name, if present."""

        for column in self.columns:
            if column.name == name:
                return column
        return None

    def values(self, name: str) -> list[object]:
        """Return the raw values of a column in row order."""

        return [row.get(name) for row in self.rows]
