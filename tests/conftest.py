"""Pytest fixtures shared across chart tests."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from analysis.columns import Dataset


@pytest.fixture
def sales_dataset() -> Dataset:
    """Return a small month/revenue dataset with formatted and missing cells."""

    return Dataset.from_records(
        [
            {"Month": "Jan", "Revenue": "$1,200", "Units": 10, "Region": "North"},
            {"Month": "Feb", "Revenue": "1,500", "Units": 12, "Region": "South"},
            {"Month": "Mar", "Revenue": "", "Units": 9, "Region": "East"},
        ],
        file_name="sales.xlsx",
    )


@pytest.fixture
def grid_dataset() -> Dataset:
    """Return a 20-row dataset covering a 5 x 4 X/Y grid with Z = X * Y."""

    rows = [{"X": x, "Y": y, "Z": x * y} for y in range(1, 5) for x in range(1, 6)]
    return Dataset.from_records(rows, file_name="grid.csv")


@pytest.fixture
def store():
    """Return a configuration store without a remote mirror."""

    from core.store import ChartConfigurationStore

    return ChartConfigurationStore()


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, views, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
