"""Axis validation for chart configurations.

The validator answers two questions for the chart wizard: which columns may be
offered for each axis, and whether the current selections satisfy the
requirements of the chosen chart kind.
"""

from __future__ import annotations

from dataclasses import dataclass

from analysis.chart_kinds import DEFAULT_CATALOG, ChartCatalog
from analysis.columns import ColumnDescriptor

from .schema import ChartConfiguration


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of validating a chart configuration."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def x_axis_candidates(
    columns: tuple[ColumnDescriptor, ...],
    config: ChartConfiguration,
) -> tuple[ColumnDescriptor, ...]:
    """Return the columns selectable for the X axis.

    Any column qualifies as long as it is not already bound to Y or Z.
    """

    taken = {config.y_axis, config.z_axis}
    return tuple(column for column in columns if column.name not in taken)


def y_axis_candidates(
    columns: tuple[ColumnDescriptor, ...],
    config: ChartConfiguration,
) -> tuple[ColumnDescriptor, ...]:
    """Return the columns selectable for the Y axis.

    Numeric columns not bound to X or Z are preferred; when none exist every
    remaining column is offered instead.
    """

    return _numeric_first(columns, taken={config.x_axis, config.z_axis})


def z_axis_candidates(
    columns: tuple[ColumnDescriptor, ...],
    config: ChartConfiguration,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
) -> tuple[ColumnDescriptor, ...]:
    """Return the columns selectable for the Z axis (empty for 2D kinds)."""

    if not catalog.is_3d(config.kind):
        return ()
    return _numeric_first(columns, taken={config.x_axis, config.y_axis})


def _numeric_first(
    columns: tuple[ColumnDescriptor, ...],
    *,
    taken: set[str | None],
) -> tuple[ColumnDescriptor, ...]:
    """Return available numeric columns, or every available column if none are numeric."""

    available = tuple(column for column in columns if column.name not in taken)
    numeric = tuple(column for column in available if column.is_numeric)
    return numeric or available


def is_axis_valid(config: ChartConfiguration, *, catalog: ChartCatalog = DEFAULT_CATALOG) -> bool:
    """Return True when X and Y are set, and Z is set whenever the kind is 3D."""

    if not config.x_axis or not config.y_axis:
        return False
    if catalog.is_3d(config.kind) and not config.z_axis:
        return False
    return True


def validate_axes(
    config: ChartConfiguration,
    *,
    columns: tuple[ColumnDescriptor, ...] | None = None,
    catalog: ChartCatalog = DEFAULT_CATALOG,
) -> ValidationResult:
    """Validate axis selections against the chosen chart kind.

    Args:
        config: Configuration under construction.
        columns: Optional dataset schema; when given, selections must name
            existing columns.
        catalog: Chart kind catalog used to look up 3D requirements.

    Returns:
        ValidationResult containing errors and warnings.
    """

    errors: list[str] = []
    warnings: list[str] = []

    spec = catalog.get(config.kind)
    if spec is None:
        errors.append("Select a chart type before configuring axes.")
    is_3d = spec.is_3d if spec is not None else False

    if not config.x_axis:
        errors.append("Select a column for the X-axis.")
    if not config.y_axis:
        errors.append("Select a column for the Y-axis.")
    if is_3d and not config.z_axis:
        errors.append("Select a column for the Z-axis for 3D charts.")
    if not is_3d and config.z_axis:
        errors.append(f"Z-axis {config.z_axis!r} is only allowed for 3D charts.")

    selected = [axis for axis in (config.x_axis, config.y_axis, config.z_axis) if axis]
    if len(selected) != len(set(selected)):
        errors.append("Each axis must use a different column.")

    if columns is not None:
        by_name = {column.name: column for column in columns}
        for label, axis in (("X", config.x_axis), ("Y", config.y_axis), ("Z", config.z_axis)):
            if axis and axis not in by_name:
                errors.append(f"{label}-axis column {axis!r} does not exist in the dataset.")
        for label, axis in (("Y", config.y_axis), ("Z", config.z_axis)):
            column = by_name.get(axis or "")
            if column is not None and not column.is_numeric:
                warnings.append(
                    f"{label}-axis column {axis!r} is not numeric; non-numeric values are plotted as 0."
                )

    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
