"""Pure analysis package for SheetCharts.

This package contains deterministic, testable computations over in-memory
spreadsheet data: numeric coercion, column type inference, and the chart
kind taxonomy. It must not import Django or perform any database I/O.
"""

from .chart_kinds import DEFAULT_CATALOG, ChartCatalog, ChartKind, ChartKindSpec
from .coercion import coerce_numeric, is_numeric_value
from .columns import ColumnDescriptor, Dataset, infer_column_type

__all__ = [
    "DEFAULT_CATALOG",
    "ChartCatalog",
    "ChartKind",
    "ChartKindSpec",
    "ColumnDescriptor",
    "Dataset",
    "coerce_numeric",
    "infer_column_type",
    "is_numeric_value",
]
