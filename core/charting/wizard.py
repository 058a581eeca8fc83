"""Guarded, step-by-step chart configuration workflow.

The wizard walks a user through five ordered steps. Moving forward requires
the guard of the current step to hold; moving back is always allowed. The
final "create" action is only available from the preview step and re-checks
the axis selections before anything is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import IntEnum
from typing import TYPE_CHECKING

from analysis.chart_kinds import DEFAULT_CATALOG, ChartCatalog, ChartKind
from analysis.columns import ColumnDescriptor, Dataset

from .compiler import CompileOptions, RenderedPlot, extract_series, render_plot
from .schema import STYLE_FIELDS, ChartConfiguration, default_title, normalize_configuration
from .validator import (
    ValidationResult,
    validate_axes,
    x_axis_candidates,
    y_axis_candidates,
    z_axis_candidates,
)

if TYPE_CHECKING:
    from core.store import ChartConfigurationStore, StoreResult


class WizardStep(IntEnum):
    """Ordered wizard steps."""

    select_data = 0
    choose_chart = 1
    configure_axes = 2
    style_theme = 3
    preview = 4


STEP_LABELS: dict[WizardStep, str] = {
    WizardStep.select_data: "Select Data",
    WizardStep.choose_chart: "Choose Chart",
    WizardStep.configure_axes: "Configure Axes",
    WizardStep.style_theme: "Style & Theme",
    WizardStep.preview: "Preview",
}

_VALID = ValidationResult(is_valid=True)


@dataclass(slots=True)
class WizardSession:
    """Live state of one chart wizard run.

    Args:
        dataset: Dataset loaded into the workflow.
        catalog: Chart kind catalog consulted by every step.
        options: Series extraction options used for preview and create.
        config: Configuration under construction.
        current_step: Current wizard position.
    """

    dataset: Dataset
    catalog: ChartCatalog = DEFAULT_CATALOG
    options: CompileOptions = CompileOptions()
    config: ChartConfiguration = field(default_factory=ChartConfiguration)
    current_step: WizardStep = WizardStep.select_data

    def __post_init__(self) -> None:
        if not self.config.file_name and self.dataset.file_name:
            self.config = replace(self.config, file_name=self.dataset.file_name)

    @property
    def step_label(self) -> str:
        """Return the display label of the current step."""

        return STEP_LABELS[self.current_step]

    @property
    def columns(self) -> tuple[ColumnDescriptor, ...]:
        """Return the dataset schema."""

        return self.dataset.columns

    def check_step(self, step: WizardStep | None = None) -> ValidationResult:
        """Evaluate the forward guard of a step (the current one by default)."""

        step = self.current_step if step is None else step
        if step == WizardStep.select_data:
            errors: list[str] = []
            if self.dataset.row_count == 0:
                errors.append("The selected file contains no data rows.")
            if not self.dataset.columns:
                errors.append("The selected file contains no columns.")
            return ValidationResult(is_valid=not errors, errors=tuple(errors))
        if step == WizardStep.choose_chart:
            if self.catalog.get(self.config.kind) is None:
                return ValidationResult(is_valid=False, errors=("Select a chart type.",))
            return _VALID
        if step == WizardStep.configure_axes:
            return validate_axes(self.config, columns=self.columns, catalog=self.catalog)
        return _VALID

    def can_advance(self) -> bool:
        """Return True when the wizard can move to the next step."""

        return self.current_step < WizardStep.preview and self.check_step().is_valid

    def advance(self) -> ValidationResult:
        """Move to the next step when the current step's guard holds.

        Returns:
            The guard result; the step only changes when it is valid.
        """

        if self.current_step == WizardStep.preview:
            return ValidationResult(is_valid=False, errors=("Already at the final step.",))
        result = self.check_step()
        if result.is_valid:
            self.current_step = WizardStep(self.current_step + 1)
        return result

    def go_back(self) -> bool:
        """Move to the previous step; returns False when already at the first step."""

        if self.current_step == WizardStep.select_data:
            return False
        self.current_step = WizardStep(self.current_step - 1)
        return True

    def select_chart_kind(self, kind: ChartKind | str) -> ValidationResult:
        """Select a chart kind; choosing a 2D kind clears any Z-axis selection."""

        spec = self.catalog.get(kind)
        if spec is None:
            return ValidationResult(is_valid=False, errors=(f"Unknown chart type: {kind!r}.",))
        self.config = normalize_configuration(replace(self.config, kind=spec.kind), catalog=self.catalog)
        return _VALID

    def assign_axes(
        self,
        *,
        x_axis: str | None = None,
        y_axis: str | None = None,
        z_axis: str | None = None,
    ) -> ValidationResult:
        """Bind dataset columns to axes and report the resulting axis validity.

        A Z axis is ignored for 2D kinds.
        """

        if not self.catalog.is_3d(self.config.kind):
            z_axis = None
        self.config = replace(self.config, x_axis=x_axis, y_axis=y_axis, z_axis=z_axis)
        return validate_axes(self.config, columns=self.columns, catalog=self.catalog)

    def axis_options(self) -> dict[str, tuple[str, ...]]:
        """Return the column names currently offered for each axis."""

        return {
            "x": tuple(column.name for column in x_axis_candidates(self.columns, self.config)),
            "y": tuple(column.name for column in y_axis_candidates(self.columns, self.config)),
            "z": tuple(
                column.name for column in z_axis_candidates(self.columns, self.config, catalog=self.catalog)
            ),
        }

    def update_style(self, **changes: object) -> ValidationResult:
        """Apply display option changes (title, theme, fonts, toggles).

        Changes naming a non-style field are rejected as a whole and leave the
        configuration untouched.
        """

        unknown = set(changes) - STYLE_FIELDS
        if unknown:
            return ValidationResult(is_valid=False, errors=(f"Not a style option: {sorted(unknown)}.",))
        self.config = normalize_configuration(replace(self.config, **changes), catalog=self.catalog)
        return _VALID

    def preview(self) -> RenderedPlot:
        """Compile the current configuration against the dataset for preview."""

        return render_plot(self.config, self.dataset, catalog=self.catalog, options=self.options)

    def finalize(self, *, now: datetime | None = None) -> ChartConfiguration:
        """Return the configuration with series, provenance and default title attached."""

        config = normalize_configuration(self.config, catalog=self.catalog)
        config = extract_series(config, self.dataset, catalog=self.catalog, options=self.options)
        return replace(
            config,
            title=config.title or default_title(config),
            created_at=now or datetime.now(tz=UTC),
        )

    def create(self, store: ChartConfigurationStore) -> StoreResult:
        """Persist the finalized configuration.

        Only available from the preview step; axis selections are re-validated
        and nothing is compiled or stored when they are invalid.

        Args:
            store: Configuration store receiving the chart.

        Returns:
            StoreResult carrying the new chart id, or the blocking error.
        """

        from core.store import StoreResult

        if self.current_step != WizardStep.preview:
            return StoreResult.failure("invalid", "Charts can only be created from the preview step.")
        result = validate_axes(self.config, columns=self.columns, catalog=self.catalog)
        if not result.is_valid:
            return StoreResult.failure("invalid", " ".join(result.errors))
        return store.create(self.finalize())
