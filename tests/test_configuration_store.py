"""Tests for the stored chart configuration service."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from unittest import mock

import pytest
from django.db import DatabaseError

from analysis.chart_kinds import ChartKind
from analysis.columns import Dataset
from core.charting.compiler import extract_series
from core.charting.schema import ChartConfiguration, FontStyle, normalize_configuration
from core.models import GalleryEntry, StoredChart
from core.store import ChartConfigurationStore, generate_chart_id

pytestmark = pytest.mark.integration


def _finalized(dataset: Dataset, **kwargs) -> ChartConfiguration:
    config = ChartConfiguration(
        kind=kwargs.pop("kind", ChartKind.bar),
        x_axis="Month",
        y_axis="Revenue",
        title=kwargs.pop("title", "Revenue"),
        created_at=datetime(2025, 5, 1, tzinfo=UTC),
        **kwargs,
    )
    return extract_series(normalize_configuration(config), dataset)


def test_generate_chart_id_format() -> None:
    """Generate ids with a millisecond prefix and a random base-36 suffix."""

    chart_id = generate_chart_id(now_ms=1700000000000)
    assert re.fullmatch(r"chart-1700000000000-[0-9a-z]{7}", chart_id)
    assert generate_chart_id() != generate_chart_id()


@pytest.mark.django_db
def test_create_then_load_round_trips(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Load back exactly the configuration that was created."""

    config = _finalized(sales_dataset, legend_font=FontStyle(size=9, color="#111111", family="Lato"))
    created = store.create(config)
    assert created.ok is True
    assert created.version == 1

    loaded = store.load(created.chart_id or "")
    assert loaded.ok is True
    assert loaded.config == config
    assert loaded.version == 1


@pytest.mark.django_db
def test_create_writes_gallery_metadata(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Write a gallery entry with the display name, file and 3D flag."""

    created = store.create(_finalized(sales_dataset, title=""))
    entry = GalleryEntry.objects.get(chart_id=created.chart_id)
    assert entry.title == "Revenue vs Month"
    assert entry.chart_type == "Bar Chart"
    assert entry.chart_kind == "bar"
    assert entry.file_name == "sales.xlsx"
    assert entry.is_3d is False
    assert entry.created == datetime(2025, 5, 1, tzinfo=UTC)


@pytest.mark.django_db
def test_create_rejects_configuration_without_kind(store: ChartConfigurationStore) -> None:
    """Refuse to store a configuration that has no chart kind."""

    result = store.create(ChartConfiguration(x_axis="a", y_axis="b"))
    assert result.ok is False
    assert result.reason == "invalid"
    assert StoredChart.objects.count() == 0


@pytest.mark.django_db
def test_create_reports_storage_errors(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Return a storage_error result when the database write fails."""

    with mock.patch.object(StoredChart.objects, "create", side_effect=DatabaseError("disk full")):
        result = store.create(_finalized(sales_dataset))
    assert result.ok is False
    assert result.reason == "storage_error"
    assert "disk full" in (result.error or "")
    assert GalleryEntry.objects.count() == 0


@pytest.mark.django_db
def test_create_queues_the_remote_mirror_on_commit(
    sales_dataset: Dataset, django_capture_on_commit_callbacks
) -> None:
    """Submit the created chart to the remote mirror only once the write commits."""

    mirror = mock.Mock()
    store = ChartConfigurationStore(mirror=mirror)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        created = store.create(_finalized(sales_dataset))
        mirror.submit.assert_not_called()
    assert created.ok is True
    assert len(callbacks) == 1
    mirror.submit.assert_called_once()
    kwargs = mirror.submit.call_args.kwargs
    assert kwargs["chart_type"] == "bar"
    assert kwargs["from_excel_file"] == "sales.xlsx"
    assert kwargs["chart_config"]["chartTitle"] == "Revenue"


@pytest.mark.django_db
def test_mirror_failure_does_not_fail_create(sales_dataset: Dataset, django_capture_on_commit_callbacks) -> None:
    """Keep the local result when the mirror cannot be queued."""

    mirror = mock.Mock()
    mirror.submit.side_effect = RuntimeError("cannot schedule new futures after shutdown")
    with django_capture_on_commit_callbacks(execute=True):
        created = ChartConfigurationStore(mirror=mirror).create(_finalized(sales_dataset))
    assert created.ok is True
    mirror.submit.assert_called_once()


@pytest.mark.django_db
def test_load_reports_missing_and_corrupt_charts(store: ChartConfigurationStore) -> None:
    """Distinguish unknown ids from unreadable stored payloads."""

    assert store.load("chart-missing").reason == "not_found"
    StoredChart.objects.create(chart_id="chart-bad", config={"type": "radar"})
    assert store.load("chart-bad").reason == "corrupt"


@pytest.mark.django_db
def test_update_merges_fields_and_leaves_gallery_metadata(
    store: ChartConfigurationStore, sales_dataset: Dataset
) -> None:
    """Overwrite only the given fields and keep the original gallery title."""

    created = store.create(_finalized(sales_dataset))
    updated = store.update(created.chart_id or "", {"title": "Renamed", "theme": "Ocean"})
    assert updated.ok is True
    assert updated.version == 2
    assert updated.config is not None
    assert updated.config.title == "Renamed"
    assert updated.config.theme == "Ocean"
    assert updated.config.y_data == (1200.0, 1500.0, 0.0)

    assert store.load(created.chart_id or "").config == updated.config
    assert GalleryEntry.objects.get(chart_id=created.chart_id).title == "Revenue"


@pytest.mark.django_db
def test_update_can_resync_gallery_metadata(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Refresh gallery metadata when resync is requested."""

    created = store.create(_finalized(sales_dataset))
    store.update(created.chart_id or "", {"title": "Renamed", "kind": "line"}, resync_metadata=True)
    entry = GalleryEntry.objects.get(chart_id=created.chart_id)
    assert entry.title == "Renamed"
    assert entry.chart_type == "Line Chart"
    assert entry.chart_kind == "line"


@pytest.mark.django_db
def test_update_rejects_unknown_fields_and_kinds(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Reject changes naming unknown fields or chart kinds."""

    created = store.create(_finalized(sales_dataset))
    assert store.update(created.chart_id or "", {"colour": "red"}).reason == "invalid"
    assert store.update(created.chart_id or "", {"kind": "radar"}).reason == "invalid"
    assert store.update("chart-missing", {"title": "x"}).reason == "not_found"


@pytest.mark.django_db
def test_update_detects_version_conflicts(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Reject a stale expected version and accept the current one."""

    created = store.create(_finalized(sales_dataset))
    chart_id = created.chart_id or ""
    assert store.update(chart_id, {"title": "First"}, expected_version=1).ok is True
    stale = store.update(chart_id, {"title": "Second"}, expected_version=1)
    assert stale.ok is False
    assert stale.reason == "conflict"
    assert store.load(chart_id).config.title == "First"  # type: ignore[union-attr]


@pytest.mark.django_db
def test_update_to_two_dimensional_kind_clears_z(store: ChartConfigurationStore, grid_dataset: Dataset) -> None:
    """Normalize Z fields when an update switches to a 2D kind."""

    config = extract_series(
        normalize_configuration(ChartConfiguration(kind=ChartKind.scatter3d, x_axis="X", y_axis="Y", z_axis="Z")),
        grid_dataset,
    )
    created = store.create(config)
    updated = store.update(created.chart_id or "", {"kind": ChartKind.scatter})
    assert updated.config is not None
    assert updated.config.z_axis is None
    assert updated.config.z_data == ()
    assert updated.config.is_3d is False


@pytest.mark.django_db
def test_list_is_newest_first_and_filters(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """List gallery entries newest first with search and type filters."""

    first = store.create(_finalized(sales_dataset, title="Revenue by month"))
    second = store.create(_finalized(sales_dataset, title="Revenue share", kind=ChartKind.pie))

    listing = store.list()
    assert listing.ok is True
    assert [entry.id for entry in listing.entries] == [second.chart_id, first.chart_id]
    assert [entry.id for entry in store.list(sort="oldest").entries] == [first.chart_id, second.chart_id]
    assert [entry.id for entry in store.list(search="share").entries] == [second.chart_id]
    assert [entry.id for entry in store.list(chart_type="pie").entries] == [second.chart_id]
    assert [entry.id for entry in store.list(chart_type="Bar Chart").entries] == [first.chart_id]
    assert len(store.list(chart_type="all").entries) == 2
    assert store.count() == 2
    assert store.list(sort="random").reason == "invalid"  # type: ignore[arg-type]


@pytest.mark.django_db
def test_counters_drive_popularity_sorting(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Count views and downloads and sort by them."""

    first = store.create(_finalized(sales_dataset, title="A"))
    second = store.create(_finalized(sales_dataset, title="B"))
    store.record_view(first.chart_id or "")
    store.record_view(first.chart_id or "")
    store.record_download(second.chart_id or "")

    by_views = store.list(sort="most_viewed").entries
    assert by_views[0].id == first.chart_id
    assert by_views[0].views == 2
    assert store.list(sort="most_downloaded").entries[0].id == second.chart_id
    assert store.record_view("chart-missing").reason == "not_found"


@pytest.mark.django_db
def test_delete_removes_chart_and_gallery_entry(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Delete both the stored configuration and its gallery entry."""

    created = store.create(_finalized(sales_dataset))
    assert store.delete(created.chart_id or "").ok is True
    assert store.load(created.chart_id or "").reason == "not_found"
    assert GalleryEntry.objects.count() == 0
    assert store.delete(created.chart_id or "").reason == "not_found"


@pytest.mark.django_db
def test_update_rejects_three_dimensional_kind_without_z(
    store: ChartConfigurationStore, sales_dataset: Dataset
) -> None:
    """Refuse to turn a 2D chart into a 3D chart that has no Z column."""

    created = store.create(_finalized(sales_dataset))
    chart_id = created.chart_id or ""
    result = store.update(chart_id, {"kind": ChartKind.surface3d})
    assert result.ok is False
    assert result.reason == "invalid"
    assert "Z-axis" in (result.error or "")

    reloaded = store.load(chart_id)
    assert reloaded.version == 1
    assert reloaded.config is not None
    assert reloaded.config.kind == ChartKind.bar
    assert reloaded.config.is_3d is False


@pytest.mark.django_db
def test_update_rejects_axis_and_series_changes(store: ChartConfigurationStore, sales_dataset: Dataset) -> None:
    """Refuse to rebind axes or replace series without the source dataset."""

    created = store.create(_finalized(sales_dataset))
    chart_id = created.chart_id or ""
    renamed = store.update(chart_id, {"y_axis": "Units"})
    assert renamed.reason == "invalid"
    assert "y_axis" in (renamed.error or "")
    assert store.update(chart_id, {"y_data": (1.0, 2.0, 3.0)}).reason == "invalid"

    unchanged = store.update(chart_id, {"y_axis": "Revenue", "title": "Same axes"})
    assert unchanged.ok is True
    assert unchanged.config is not None
    assert unchanged.config.title == "Same axes"
