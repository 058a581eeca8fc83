"""Payload encoding/decoding helpers for ChartConfiguration values.

Payload keys follow the chart export format shared with the front end and the
remote chart service (`chartTitle`, `xAxisLabelFontSize`, ...), so stored
payloads remain readable by existing clients.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from analysis.chart_kinds import ChartKind

from .schema import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_FAMILY,
    ChartConfiguration,
    FontStyle,
)
from .themes import DEFAULT_THEME_NAME

PAYLOAD_VERSION = "chart_config_v1"

_FONT_PREFIXES: tuple[tuple[str, str], ...] = (
    ("legend_font", "legendFont"),
    ("x_axis_font", "xAxisLabelFont"),
    ("y_axis_font", "yAxisLabelFont"),
    ("z_axis_font", "zAxisLabelFont"),
)


def encode_chart_configuration(config: ChartConfiguration) -> dict[str, Any]:
    """Encode a ChartConfiguration into a JSON-serializable dictionary.

    Args:
        config: ChartConfiguration to encode.

    Returns:
        Dict payload safe for JSONField storage and remote transfer.
    """

    payload: dict[str, Any] = {
        "version": PAYLOAD_VERSION,
        "type": str(config.kind) if config.kind is not None else None,
        "xAxis": config.x_axis,
        "yAxis": config.y_axis,
        "zAxis": config.z_axis,
        "chartTitle": config.title,
        "selectedTheme": config.theme,
        "showLegend": config.show_legend,
        "showGrid": config.show_grid,
        "plotBgColor": config.plot_bg_color,
        "paperBgColor": config.paper_bg_color,
        "fontColor": config.font_color,
        "globalFontSize": config.global_font_size,
        "globalFontFamily": config.global_font_family,
        "xData": list(config.x_data),
        "yData": list(config.y_data),
        "zData": list(config.z_data),
        "fileName": config.file_name,
        "is3D": config.is_3d,
        "createdAt": config.created_at.isoformat() if config.created_at is not None else None,
        "dataPoints": config.data_points,
    }
    for field_name, prefix in _FONT_PREFIXES:
        font: FontStyle | None = getattr(config, field_name)
        payload[f"{prefix}Size"] = font.size if font is not None else None
        payload[f"{prefix}Color"] = font.color if font is not None else None
        payload[f"{prefix}Family"] = font.family if font is not None else None
    return payload


def decode_chart_configuration(payload: dict[str, Any]) -> ChartConfiguration:
    """Decode a ChartConfiguration from a stored payload dictionary.

    Missing style keys fall back to the wizard defaults, matching how older
    exports without customization fields are displayed.

    Args:
        payload: Payload previously produced by `encode_chart_configuration`.

    Returns:
        ChartConfiguration instance.

    Raises:
        ValueError: When the payload is not a mapping or the chart type is not
            a known ChartKind.
    """

    if not isinstance(payload, dict):
        raise ValueError(f"Chart configuration payload must be an object, got {type(payload).__name__}.")
    raw_kind = payload.get("type")
    kind = ChartKind(str(raw_kind)) if raw_kind else None
    fonts = {field_name: _parse_font(payload, prefix) for field_name, prefix in _FONT_PREFIXES}
    return ChartConfiguration(
        kind=kind,
        x_axis=_parse_optional_str(payload.get("xAxis")),
        y_axis=_parse_optional_str(payload.get("yAxis")),
        z_axis=_parse_optional_str(payload.get("zAxis")),
        title=str(payload.get("chartTitle") or ""),
        theme=str(payload.get("selectedTheme") or DEFAULT_THEME_NAME),
        show_legend=_parse_bool(payload.get("showLegend"), default=True),
        show_grid=_parse_bool(payload.get("showGrid"), default=True),
        plot_bg_color=str(payload.get("plotBgColor") or DEFAULT_BACKGROUND_COLOR),
        paper_bg_color=str(payload.get("paperBgColor") or DEFAULT_BACKGROUND_COLOR),
        font_color=str(payload.get("fontColor") or DEFAULT_FONT_COLOR),
        global_font_size=_parse_int(payload.get("globalFontSize")) or 14,
        global_font_family=str(payload.get("globalFontFamily") or DEFAULT_FONT_FAMILY),
        legend_font=fonts["legend_font"] or FontStyle(),
        x_axis_font=fonts["x_axis_font"] or FontStyle(),
        y_axis_font=fonts["y_axis_font"] or FontStyle(),
        z_axis_font=fonts["z_axis_font"],
        x_data=tuple(payload.get("xData") or ()),
        y_data=tuple(_parse_float(value) for value in (payload.get("yData") or ())),
        z_data=tuple(_parse_float(value) for value in (payload.get("zData") or ())),
        file_name=str(payload.get("fileName") or ""),
        created_at=_parse_datetime(payload.get("createdAt")),
        data_points=_parse_int(payload.get("dataPoints")) or 0,
        is_3d=_parse_bool(payload.get("is3D"), default=False),
    )


def payload_field_changes(config: ChartConfiguration, partial: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a partial payload into ChartConfiguration field changes.

    The partial payload is overlaid on the encoded configuration key by key,
    decoded, and compared field by field against `config`.

    Args:
        config: Current configuration.
        partial: Payload keys to overwrite (`chartTitle`, `selectedTheme`, ...).

    Returns:
        Mapping of changed ChartConfiguration field names to new values.

    Raises:
        ValueError: When a key is not part of the payload format or the merged
            payload cannot be decoded.
    """

    current = encode_chart_configuration(config)
    unknown = sorted(set(partial) - set(current))
    if unknown:
        raise ValueError(f"Unknown chart configuration keys: {unknown}.")
    merged = decode_chart_configuration({**current, **partial})
    return {
        name: getattr(merged, name)
        for name in ChartConfiguration.__dataclass_fields__
        if getattr(merged, name) != getattr(config, name)
    }


def _parse_font(payload: dict[str, Any], prefix: str) -> FontStyle | None:
    """Decode a font triple; None when no part of it was stored."""

    size = _parse_int(payload.get(f"{prefix}Size"))
    color = payload.get(f"{prefix}Color")
    family = payload.get(f"{prefix}Family")
    if size is None and not color and not family:
        return None
    return FontStyle(
        size=size if size is not None else 12,
        color=str(color or DEFAULT_FONT_COLOR),
        family=str(family or DEFAULT_FONT_FAMILY),
    )


def _parse_optional_str(value: object) -> str | None:
    """Return a non-empty string or None."""

    if value is None or value == "":
        return None
    return str(value)


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing for stored payloads."""

    if value is None or value == "":
        return None
    try:
        return int(str(value))
    except ValueError:
        return None


def _parse_float(value: object) -> float | None:
    """Best-effort float parsing; None stays None (missing cells)."""

    if value is None:
        return None
    try:
        return float(str(value))
    except ValueError:
        return None


def _parse_bool(value: object, *, default: bool) -> bool:
    """Best-effort bool parsing for stored payloads."""

    if isinstance(value, bool):
        return value
    if value is None:
        return default
    normalized = str(value).strip().casefold()
    return normalized in {"1", "true", "yes", "on"}


def _parse_datetime(value: object) -> datetime | None:
    """Best-effort ISO datetime parsing for stored payloads."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None
