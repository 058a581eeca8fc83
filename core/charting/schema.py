"""Schema types for user-built chart configurations.

A ChartConfiguration is the single record the chart wizard builds up step by
step. Once finalized it also carries the derived numeric series and
provenance, and it is what the configuration store persists. Plot
specifications are always recomputed from it rather than stored.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from analysis.chart_kinds import DEFAULT_CATALOG, ChartCatalog, ChartKind

from .themes import DEFAULT_THEME_NAME

DEFAULT_BACKGROUND_COLOR = "#1C1C1C"
DEFAULT_FONT_COLOR = "#E0E0E0"
DEFAULT_FONT_FAMILY = "Roboto"

FONT_FAMILIES: tuple[str, ...] = (
    "Arial",
    "Verdana",
    "Helvetica",
    "Tahoma",
    "Trebuchet MS",
    "Georgia",
    "Times New Roman",
    "Courier New",
    "Lucida Console",
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "sans-serif",
    "serif",
    "monospace",
)


@dataclass(frozen=True, slots=True)
class FontStyle:
    """Font settings for a legend or axis title."""

    size: int = 12
    color: str = DEFAULT_FONT_COLOR
    family: str = DEFAULT_FONT_FAMILY


@dataclass(frozen=True, slots=True)
class ChartConfiguration:
    """User selections for a chart plus, once finalized, its derived series.

    Args:
        kind: Selected chart kind, or None before step 1 is completed.
        x_axis: Column bound to the X axis (labels for pie charts).
        y_axis: Column bound to the Y axis (values for pie charts).
        z_axis: Column bound to the Z axis; only set for 3D kinds.
        title: Chart title.
        theme: Color theme name.
        show_legend: Whether the legend is displayed.
        show_grid: Whether axis grid lines are displayed.
        plot_bg_color: Plot area background color.
        paper_bg_color: Figure background color.
        font_color: Global font color.
        global_font_size: Global font size.
        global_font_family: Global font family.
        legend_font: Legend font settings.
        x_axis_font: X axis title font settings.
        y_axis_font: Y axis title font settings.
        z_axis_font: Z axis title font settings; only set for 3D kinds.
        x_data: Raw X values in row order.
        y_data: Coerced Y values in row order.
        z_data: Coerced Z values in row order (3D kinds only). Surface charts
            keep unrecognized cells as None.
        file_name: Source spreadsheet name.
        created_at: Creation timestamp.
        data_points: Number of source rows.
        is_3d: Whether the chosen kind is 3D.
    """

    kind: ChartKind | None = None
    x_axis: str | None = None
    y_axis: str | None = None
    z_axis: str | None = None
    title: str = ""
    theme: str = DEFAULT_THEME_NAME
    show_legend: bool = True
    show_grid: bool = True
    plot_bg_color: str = DEFAULT_BACKGROUND_COLOR
    paper_bg_color: str = DEFAULT_BACKGROUND_COLOR
    font_color: str = DEFAULT_FONT_COLOR
    global_font_size: int = 14
    global_font_family: str = DEFAULT_FONT_FAMILY
    legend_font: FontStyle = FontStyle()
    x_axis_font: FontStyle = FontStyle()
    y_axis_font: FontStyle = FontStyle()
    z_axis_font: FontStyle | None = None
    x_data: tuple[object, ...] = ()
    y_data: tuple[float | None, ...] = ()
    z_data: tuple[float | None, ...] = ()
    file_name: str = ""
    created_at: datetime | None = None
    data_points: int = 0
    is_3d: bool = False


STYLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "theme",
        "show_legend",
        "show_grid",
        "plot_bg_color",
        "paper_bg_color",
        "font_color",
        "global_font_size",
        "global_font_family",
        "legend_font",
        "x_axis_font",
        "y_axis_font",
        "z_axis_font",
    }
)
SERIES_FIELDS: frozenset[str] = frozenset(
    {"x_axis", "y_axis", "z_axis", "x_data", "y_data", "z_data", "data_points"}
)
CONFIGURATION_FIELDS: frozenset[str] = frozenset(ChartConfiguration.__dataclass_fields__)


def normalize_configuration(
    config: ChartConfiguration,
    *,
    catalog: ChartCatalog = DEFAULT_CATALOG,
) -> ChartConfiguration:
    """Align the 3D flag and Z-axis fields with the selected kind.

    Z-axis selections, fonts and data are cleared for 2D kinds; 3D kinds get a
    default Z-axis font when none was chosen.
    """

    is_3d = catalog.is_3d(config.kind)
    if not is_3d:
        return replace(config, is_3d=False, z_axis=None, z_axis_font=None, z_data=())
    return replace(config, is_3d=True, z_axis_font=config.z_axis_font or FontStyle())


def default_title(config: ChartConfiguration) -> str:
    """Return the title used when the user leaves the title blank."""

    title = f"{config.y_axis} vs {config.x_axis}"
    if config.z_axis:
        title = f"{title} vs {config.z_axis}"
    return title
