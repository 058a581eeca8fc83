"""Compile chart configurations into declarative plot specifications.

The output is a Plotly-shaped `{traces, layout}` payload consumed by the
front-end renderer. Compilation is pure: it only scans arrays and performs
lookups, so it can run on every style edit in the wizard preview.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any, TypedDict

from analysis.chart_kinds import DEFAULT_CATALOG, ChartCatalog, ChartKind
from analysis.coercion import coerce_numeric, is_numeric_value
from analysis.columns import Dataset

from .schema import ChartConfiguration, FontStyle
from .themes import ColorTheme, resolve_theme

logger = logging.getLogger(__name__)

PREVIEW_UNAVAILABLE = "Preview unavailable"

GRID_COLOR = "#333333"
AXIS_LINE_COLOR = "#444444"
ZERO_LINE_COLOR = "#555555"
PIE_TEXT_COLOR = "#ffffff"


class PlotTrace(TypedDict, total=False):
    """A single Plotly trace."""

    type: str
    mode: str
    name: str
    x: list[Any]
    y: list[Any]
    z: list[Any]
    labels: list[Any]
    values: list[Any]
    marker: dict[str, Any]
    line: dict[str, Any]
    fill: str
    fillcolor: str
    textinfo: str
    textfont: dict[str, Any]
    colorscale: list[list[Any]]


class PlotLayout(TypedDict, total=False):
    """Plotly layout options."""

    title: dict[str, Any]
    showlegend: bool
    margin: dict[str, int]
    paper_bgcolor: str
    plot_bgcolor: str
    font: dict[str, Any]
    legend: dict[str, Any]
    colorway: list[str]
    xaxis: dict[str, Any]
    yaxis: dict[str, Any]
    scene: dict[str, Any]


class PlotSpecification(TypedDict):
    """Compiled plot: traces plus layout."""

    traces: list[PlotTrace]
    layout: PlotLayout


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Options controlling series extraction.

    Args:
        missing_as_none: Use None instead of 0 for cells that are not numeric,
            both in coerced series and in empty surface grid cells.
    """

    missing_as_none: bool = False

    @property
    def missing_value(self) -> float | None:
        """Return the substitute for non-numeric cells."""

        return None if self.missing_as_none else 0.0


@dataclass(frozen=True, slots=True)
class SurfaceGrid:
    """Z values arranged on the sorted distinct X and Y values.

    Args:
        x: Sorted distinct X values (grid columns).
        y: Sorted distinct Y values (grid rows).
        z: Row-major matrix of shape `len(y) x len(x)`.
    """

    x: list[Any]
    y: list[Any]
    z: list[list[float | None]]


@dataclass(frozen=True, slots=True)
class RenderedPlot:
    """A compiled plot, or the reason it could not be produced."""

    spec: PlotSpecification | None
    error: str | None = None


def extract_series(
    config: ChartConfiguration,
    dataset: Dataset,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
    options: CompileOptions = CompileOptions(),
) -> ChartConfiguration:
    """Attach series data and provenance from a dataset to a configuration.

    X values stay raw so categorical axes keep their labels; Y and Z values are
    coerced. Surface Z cells that are not numeric stay None so the stored
    series still tells the surface grid which rows to skip. Every series stays
    index-aligned with the dataset rows.
    """

    missing = options.missing_value
    x_data: tuple[object, ...] = ()
    y_data: tuple[float | None, ...] = ()
    z_data: tuple[float | None, ...] = ()
    if config.x_axis:
        x_data = tuple(dataset.values(config.x_axis))
    if config.y_axis:
        y_data = tuple(coerce_numeric(value, missing=missing) for value in dataset.values(config.y_axis))
    is_3d = catalog.is_3d(config.kind)
    if is_3d and config.z_axis:
        z_missing = None if config.kind == ChartKind.surface3d else missing
        z_data = tuple(coerce_numeric(value, missing=z_missing) for value in dataset.values(config.z_axis))
    return replace(
        config,
        x_data=x_data,
        y_data=y_data,
        z_data=z_data,
        is_3d=is_3d,
        file_name=config.file_name or dataset.file_name,
        data_points=dataset.row_count,
    )


def build_surface_grid(
    x_values: Sequence[object],
    y_values: Sequence[object],
    z_values: Sequence[object],
    *,
    fill: float | None = 0.0,
) -> SurfaceGrid:
    """Arrange point data on a grid for surface plots.

    Args:
        x_values: X value per row.
        y_values: Y value per row.
        z_values: Raw or coerced Z value per row.
        fill: Value for grid cells that no row contributes to.

    Returns:
        SurfaceGrid over the sorted distinct X and Y values. Only rows whose
        X, Y and Z values are all numeric contribute; when several rows map to
        the same cell the later row wins.
    """

    unique_x = sorted(dict.fromkeys(x_values), key=_grid_sort_key)
    unique_y = sorted(dict.fromkeys(y_values), key=_grid_sort_key)
    x_index = {value: idx for idx, value in enumerate(unique_x)}
    y_index = {value: idx for idx, value in enumerate(unique_y)}

    grid: list[list[float | None]] = [[fill] * len(unique_x) for _ in unique_y]
    for x, y, z in zip(x_values, y_values, z_values):
        if not (is_numeric_value(x) and is_numeric_value(y) and is_numeric_value(z)):
            continue
        grid[y_index[y]][x_index[x]] = coerce_numeric(z)
    return SurfaceGrid(x=unique_x, y=unique_y, z=grid)


def _grid_sort_key(value: object) -> tuple[int, float, str]:
    """Order numeric values numerically, then everything else by text."""

    if is_numeric_value(value):
        return (0, coerce_numeric(value) or 0.0, "")
    return (1, 0.0, str(value))


def build_plot_specification(
    config: ChartConfiguration,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
    options: CompileOptions = CompileOptions(),
) -> PlotSpecification:
    """Compile a configuration that already carries its series data.

    Args:
        config: Finalized configuration (series attached).
        catalog: Chart kind catalog.
        options: Compile options (missing-value handling for surface grids).

    Returns:
        PlotSpecification with one trace and a layout.

    Raises:
        ValueError: When the configuration has no chart kind.
    """

    if config.kind is None:
        raise ValueError("ChartConfiguration.kind must be selected before compiling.")
    kind = ChartKind(config.kind)
    theme = resolve_theme(config.theme)
    builder = _TRACE_BUILDERS[kind]
    trace = builder(config, theme, _TraceContext(options=options))
    return {"traces": [trace], "layout": _layout(config, theme, kind=kind, catalog=catalog)}


def compile_plot_specification(
    config: ChartConfiguration,
    dataset: Dataset,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
    options: CompileOptions = CompileOptions(),
) -> PlotSpecification:
    """Compile a configuration against its source dataset.

    Series are extracted from the dataset first, so the result depends only on
    the (configuration, dataset) pair.
    """

    finalized = extract_series(config, dataset, catalog=catalog, options=options)
    return build_plot_specification(finalized, catalog=catalog, options=options)


def render_plot(
    config: ChartConfiguration,
    dataset: Dataset | None = None,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
    options: CompileOptions = CompileOptions(),
) -> RenderedPlot:
    """Compile a plot, converting any failure into a "preview unavailable" result.

    Args:
        config: Configuration to compile.
        dataset: Source dataset; when omitted the configuration's stored
            series are used.
        catalog: Chart kind catalog.
        options: Compile options.

    Returns:
        RenderedPlot with either a specification or an error message.
    """

    try:
        if dataset is None:
            spec = build_plot_specification(config, catalog=catalog, options=options)
        else:
            spec = compile_plot_specification(config, dataset, catalog=catalog, options=options)
    except Exception:
        logger.exception("Failed to compile plot for chart kind %r", config.kind)
        return RenderedPlot(spec=None, error=PREVIEW_UNAVAILABLE)
    return RenderedPlot(spec=spec)


@dataclass(frozen=True, slots=True)
class _TraceContext:
    """Inputs shared by trace builders beyond the configuration and theme."""

    options: CompileOptions


def _bar_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    return {
        "type": "bar",
        "x": list(config.x_data),
        "y": list(config.y_data),
        "marker": {"color": theme.primary, "line": {"color": theme.accent, "width": 1}},
        "name": config.y_axis or "",
    }


def _line_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    return {
        "type": "scatter",
        "mode": "lines+markers",
        "x": list(config.x_data),
        "y": list(config.y_data),
        "line": {"color": theme.primary, "width": 3},
        "marker": {"color": theme.accent, "size": 8},
        "name": config.y_axis or "",
    }


def _pie_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    return {
        "type": "pie",
        "labels": list(config.x_data),
        "values": list(config.y_data),
        "marker": {"colors": list(theme.colors)},
        "textinfo": "label+percent",
        "textfont": {
            "color": PIE_TEXT_COLOR,
            "family": config.global_font_family,
            "size": config.global_font_size,
        },
        "name": config.y_axis or "",
    }


def _area_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    return {
        "type": "scatter",
        "mode": "lines",
        "x": list(config.x_data),
        "y": list(config.y_data),
        "fill": "tozeroy",
        # 8-digit hex: primary color at 20% opacity.
        "fillcolor": f"{theme.primary}33",
        "line": {"color": theme.primary, "width": 3},
        "name": config.y_axis or "",
    }


def _scatter_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    return {
        "type": "scatter",
        "mode": "markers",
        "x": list(config.x_data),
        "y": list(config.y_data),
        "marker": {"color": theme.primary, "size": 10, "line": {"color": theme.accent, "width": 1}},
        "name": config.y_axis or "",
    }


def _point_cloud_trace(config: ChartConfiguration, theme: ColorTheme, _: _TraceContext) -> PlotTrace:
    marker_size = 8 if config.kind == ChartKind.bar3d else 6
    return {
        "type": "scatter3d",
        "mode": "markers",
        "x": list(config.x_data),
        "y": list(config.y_data),
        "z": list(config.z_data),
        "marker": {
            "size": marker_size,
            "color": theme.primary,
            "opacity": 0.8,
            "line": {"color": theme.accent, "width": 1},
        },
        "name": f"{config.y_axis} vs {config.x_axis} vs {config.z_axis}",
    }


def _surface_trace(config: ChartConfiguration, theme: ColorTheme, context: _TraceContext) -> PlotTrace:
    grid = build_surface_grid(
        config.x_data,
        config.y_data,
        config.z_data,
        fill=context.options.missing_value,
    )
    return {
        "type": "surface",
        "x": grid.x,
        "y": grid.y,
        "z": grid.z,
        "colorscale": [[0, config.plot_bg_color], [0.5, theme.accent], [1, theme.primary]],
        "name": f"{config.z_axis} by {config.x_axis} and {config.y_axis}",
    }


_TRACE_BUILDERS: dict[ChartKind, Callable[[ChartConfiguration, ColorTheme, _TraceContext], PlotTrace]] = {
    ChartKind.bar: _bar_trace,
    ChartKind.line: _line_trace,
    ChartKind.pie: _pie_trace,
    ChartKind.area: _area_trace,
    ChartKind.scatter: _scatter_trace,
    ChartKind.bar3d: _point_cloud_trace,
    ChartKind.scatter3d: _point_cloud_trace,
    ChartKind.surface3d: _surface_trace,
}
_UNHANDLED_KINDS = set(ChartKind) - set(_TRACE_BUILDERS)
if _UNHANDLED_KINDS:
    raise RuntimeError(f"No trace builder registered for chart kinds: {sorted(_UNHANDLED_KINDS)}.")


def _font(style: FontStyle) -> dict[str, Any]:
    return {"size": style.size, "color": style.color, "family": style.family}


def _axis_layout(title: str | None, font: FontStyle, *, show_grid: bool) -> dict[str, Any]:
    return {
        "title": {"text": title or "", "font": _font(font)},
        "showgrid": show_grid,
        "gridcolor": GRID_COLOR,
        "linecolor": AXIS_LINE_COLOR,
        "zerolinecolor": ZERO_LINE_COLOR,
    }


def _layout(config: ChartConfiguration, theme: ColorTheme, *, kind: ChartKind, catalog: ChartCatalog) -> PlotLayout:
    global_font = {
        "color": config.font_color,
        "size": config.global_font_size,
        "family": config.global_font_family,
    }
    layout: PlotLayout = {
        "title": {"text": config.title, "font": dict(global_font)},
        "showlegend": config.show_legend,
        "margin": {"l": 60, "r": 60, "b": 60, "t": 80, "pad": 4},
        "paper_bgcolor": config.paper_bg_color,
        "plot_bgcolor": config.plot_bg_color,
        "font": global_font,
        "legend": {"font": _font(config.legend_font)},
        "colorway": list(theme.colors),
    }
    if catalog.is_3d(kind):
        layout["scene"] = {
            "xaxis": _axis_layout(config.x_axis, config.x_axis_font, show_grid=config.show_grid),
            "yaxis": _axis_layout(config.y_axis, config.y_axis_font, show_grid=config.show_grid),
            "zaxis": _axis_layout(config.z_axis, config.z_axis_font or FontStyle(), show_grid=config.show_grid),
        }
    elif kind != ChartKind.pie:
        layout["xaxis"] = _axis_layout(config.x_axis, config.x_axis_font, show_grid=config.show_grid)
        layout["yaxis"] = _axis_layout(config.y_axis, config.y_axis_font, show_grid=config.show_grid)
    return layout
