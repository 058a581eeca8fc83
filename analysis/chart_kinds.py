"""Chart kind taxonomy.

The catalog of chart kinds is immutable and constructed explicitly. Callers
receive it as a dependency (defaulting to `DEFAULT_CATALOG`) rather than
reaching for module state.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType


class ChartKind(StrEnum):
    """Closed set of supported visualization kinds."""

    bar = "bar"
    line = "line"
    pie = "pie"
    area = "area"
    scatter = "scatter"
    bar3d = "bar3d"
    scatter3d = "scatter3d"
    surface3d = "surface3d"


@dataclass(frozen=True, slots=True)
class ChartKindSpec:
    """Catalog entry describing a chart kind.

    Args:
        kind: ChartKind identifier.
        name: Display name shown in chart pickers and the gallery.
        description: Short description of what the chart shows.
        best_for: Hint about the data the chart suits.
        is_3d: Whether the kind requires a Z axis.
    """

    kind: ChartKind
    name: str
    description: str
    best_for: str
    is_3d: bool = False


class ChartCatalog:
    """Read-only lookup table of chart kinds."""

    def __init__(self, specs: Iterable[ChartKindSpec]) -> None:
        by_kind: dict[ChartKind, ChartKindSpec] = {}
        for spec in specs:
            if spec.kind in by_kind:
                raise ValueError(f"Duplicate chart kind in catalog: {spec.kind!r}.")
            by_kind[spec.kind] = spec
        self._by_kind = MappingProxyType(by_kind)

    def __iter__(self) -> Iterator[ChartKindSpec]:
        return iter(self._by_kind.values())

    def __len__(self) -> int:
        return len(self._by_kind)

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind

    def get(self, kind: ChartKind | str | None) -> ChartKindSpec | None:
        """Return the catalog entry for a kind, or None when unknown."""

        if kind is None:
            return None
        try:
            return self._by_kind.get(ChartKind(kind))
        except ValueError:
            return None

    def is_3d(self, kind: ChartKind | str | None) -> bool:
        """Return whether a kind requires a Z axis (unknown kinds are 2D)."""

        spec = self.get(kind)
        return spec.is_3d if spec is not None else False

    def display_name(self, kind: ChartKind | str | None) -> str:
        """Return the display name for a kind, falling back to its raw value."""

        spec = self.get(kind)
        if spec is not None:
            return spec.name
        return str(kind or "")


DEFAULT_CATALOG = ChartCatalog(
    (
        ChartKindSpec(
            kind=ChartKind.bar,
            name="Bar Chart",
            description="Compare values across categories",
            best_for="Categorical data comparison",
        ),
        ChartKindSpec(
            kind=ChartKind.line,
            name="Line Chart",
            description="Show trends over time",
            best_for="Time series data",
        ),
        ChartKindSpec(
            kind=ChartKind.pie,
            name="Pie Chart",
            description="Show parts of a whole",
            best_for="Percentage breakdown",
        ),
        ChartKindSpec(
            kind=ChartKind.area,
            name="Area Chart",
            description="Show cumulative values over time",
            best_for="Stacked data visualization",
        ),
        ChartKindSpec(
            kind=ChartKind.scatter,
            name="Scatter Plot",
            description="Show correlation between variables",
            best_for="Relationship analysis",
        ),
        ChartKindSpec(
            kind=ChartKind.bar3d,
            name="3D Bar Chart",
            description="Compare values across multiple dimensions",
            best_for="Multi-dimensional data comparison",
            is_3d=True,
        ),
        ChartKindSpec(
            kind=ChartKind.scatter3d,
            name="3D Scatter Plot",
            description="Show correlation between three variables",
            best_for="Multi-dimensional relationship analysis",
            is_3d=True,
        ),
        ChartKindSpec(
            kind=ChartKind.surface3d,
            name="3D Surface Plot",
            description="Visualize a function of two variables",
            best_for="Surface visualization and terrain mapping",
            is_3d=True,
        ),
    )
)
