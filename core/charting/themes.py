"""Named color themes for compiled plots."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_THEME_NAME = "Default"


@dataclass(frozen=True, slots=True)
class ColorTheme:
    """A named palette of at least five colors.

    Args:
        name: Theme name stored on chart configurations.
        colors: Palette; the first entry is the primary color and the second
            the accent.
    """

    name: str
    colors: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.colors) < 5:
            raise ValueError(f"ColorTheme[{self.name}] requires at least five colors.")

    @property
    def primary(self) -> str:
        """Return the primary trace color."""

        return self.colors[0]

    @property
    def accent(self) -> str:
        """Return the secondary accent color."""

        return self.colors[1]


COLOR_THEMES: tuple[ColorTheme, ...] = (
    ColorTheme(name="Default", colors=("#228DFF", "#66D9EF", "#FF6B6B", "#FFD700", "#8B5CF6")),
    ColorTheme(name="Ocean", colors=("#0ea5e9", "#06b6d4", "#0891b2", "#0e7490", "#155e75")),
    ColorTheme(name="Forest", colors=("#10b981", "#059669", "#047857", "#065f46", "#064e3b")),
    ColorTheme(name="Sunset", colors=("#f59e0b", "#f97316", "#ef4444", "#dc2626", "#b91c1c")),
    ColorTheme(name="Purple", colors=("#8b5cf6", "#7c3aed", "#6d28d9", "#5b21b6", "#4c1d95")),
    ColorTheme(name="Yellow", colors=("#f1c40f", "#f39c12", "#e67e22", "#d35400", "#c0392b")),
)
THEME_BY_NAME: dict[str, ColorTheme] = {theme.name: theme for theme in COLOR_THEMES}


def resolve_theme(name: str | None) -> ColorTheme:
    """Return the theme for a name, falling back to the default theme."""

    return THEME_BY_NAME.get(name or "", THEME_BY_NAME[DEFAULT_THEME_NAME])
