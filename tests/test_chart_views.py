"""Tests for the chart gallery JSON endpoints."""

from __future__ import annotations

import json

import pytest
from django.conf import settings
from django.test import Client
from django.urls import reverse

from analysis.chart_kinds import ChartKind
from analysis.columns import Dataset
from core.charting.compiler import extract_series
from core.charting.schema import ChartConfiguration, normalize_configuration
from core.models import GalleryEntry
from core.store import ChartConfigurationStore

pytestmark = pytest.mark.integration


def _create(store: ChartConfigurationStore, dataset: Dataset, *, title: str = "Revenue") -> str:
    config = ChartConfiguration(kind=ChartKind.bar, x_axis="Month", y_axis="Revenue", title=title)
    created = store.create(extract_series(normalize_configuration(config), dataset))
    assert created.chart_id is not None
    return created.chart_id


def test_chart_kinds_endpoint_lists_the_catalog(client) -> None:
    """Return every chart kind with its display metadata."""

    response = client.get(reverse("core:chart_kinds"))
    assert response.status_code == 200
    kinds = response.json()["kinds"]
    assert len(kinds) == 8
    assert kinds[0] == {
        "id": "bar",
        "name": "Bar Chart",
        "description": "Compare values across categories",
        "bestFor": "Categorical data comparison",
        "is3D": False,
    }


@pytest.mark.django_db
def test_chart_list_returns_gallery_entries(client, store, sales_dataset) -> None:
    """List stored charts newest first and apply the search filter."""

    older = _create(store, sales_dataset, title="Quarterly revenue")
    newer = _create(store, sales_dataset, title="Monthly revenue")

    payload = client.get(reverse("core:chart_list")).json()
    assert payload["ok"] is True
    assert payload["count"] == 2
    assert [chart["id"] for chart in payload["charts"]] == [newer, older]
    assert payload["charts"][0]["type"] == "Bar Chart"

    filtered = client.get(reverse("core:chart_list"), {"q": "quarterly"}).json()
    assert [chart["id"] for chart in filtered["charts"]] == [older]

    invalid = client.get(reverse("core:chart_list"), {"sort": "random"})
    assert invalid.status_code == 400


@pytest.mark.django_db
def test_chart_detail_recompiles_the_plot_and_counts_a_view(client, store, sales_dataset) -> None:
    """Return the stored configuration with a freshly compiled plot."""

    chart_id = _create(store, sales_dataset)
    response = client.get(reverse("core:chart_detail", args=[chart_id]))
    assert response.status_code == 200
    payload = response.json()
    assert payload["version"] == 1
    assert payload["config"]["chartTitle"] == "Revenue"
    assert payload["plot"]["traces"][0]["y"] == [1200.0, 1500.0, 0.0]
    assert payload["error"] is None
    assert GalleryEntry.objects.get(chart_id=chart_id).views == 1


@pytest.mark.django_db
def test_chart_detail_missing_chart_is_404(client) -> None:
    """Return 404 for unknown chart ids."""

    response = client.get(reverse("core:chart_detail", args=["chart-missing"]))
    assert response.status_code == 404
    assert response.json()["reason"] == "not_found"


@pytest.mark.django_db
def test_chart_update_applies_partial_payload(client, store, sales_dataset) -> None:
    """Merge payload keys into the stored configuration."""

    chart_id = _create(store, sales_dataset)
    response = client.post(
        reverse("core:chart_update", args=[chart_id]),
        data=json.dumps({"changes": {"chartTitle": "Renamed", "showLegend": False}, "version": 1}),
        content_type="application/json",
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["version"] == 2
    assert payload["config"]["chartTitle"] == "Renamed"
    assert payload["config"]["showLegend"] is False


@pytest.mark.django_db
def test_chart_update_conflict_and_bad_requests(client, store, sales_dataset) -> None:
    """Reject stale versions, unknown keys and malformed bodies."""

    chart_id = _create(store, sales_dataset)
    url = reverse("core:chart_update", args=[chart_id])

    stale = client.post(
        url,
        data=json.dumps({"changes": {"chartTitle": "x"}, "version": 7}),
        content_type="application/json",
    )
    assert stale.status_code == 409

    unknown = client.post(url, data=json.dumps({"changes": {"colour": "red"}}), content_type="application/json")
    assert unknown.status_code == 400

    malformed = client.post(url, data="not json", content_type="application/json")
    assert malformed.status_code == 400

    assert client.get(url).status_code == 405


@pytest.mark.django_db
def test_chart_delete_and_download(client, store, sales_dataset) -> None:
    """Download a stored configuration, then delete it."""

    chart_id = _create(store, sales_dataset)
    download = client.get(reverse("core:chart_download", args=[chart_id]))
    assert download.status_code == 200
    assert download["Content-Disposition"] == f'attachment; filename="{chart_id}.json"'
    assert json.loads(download.content)["type"] == "bar"
    assert GalleryEntry.objects.get(chart_id=chart_id).downloads == 1

    deleted = client.post(reverse("core:chart_delete", args=[chart_id]))
    assert deleted.status_code == 200
    assert client.post(reverse("core:chart_delete", args=[chart_id])).status_code == 404


def test_chart_preview_compiles_posted_rows(client) -> None:
    """Compile a configuration against posted rows without storing anything."""

    body = {
        "config": {"type": "line", "xAxis": "Month", "yAxis": "Revenue"},
        "rows": [{"Month": "Jan", "Revenue": "10"}, {"Month": "Feb", "Revenue": "$20"}],
    }
    response = client.post(reverse("core:chart_preview"), data=json.dumps(body), content_type="application/json")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["plot"]["traces"][0]["y"] == [10.0, 20.0]

    invalid = client.post(
        reverse("core:chart_preview"),
        data=json.dumps({"config": {"type": "radar"}, "rows": []}),
        content_type="application/json",
    )
    assert invalid.status_code == 400


@pytest.mark.django_db
def test_chart_update_rejects_three_dimensional_kind_without_z(client, store, sales_dataset) -> None:
    """Return 400 when an update would produce a 3D chart with no Z column."""

    chart_id = _create(store, sales_dataset)
    response = client.post(
        reverse("core:chart_update", args=[chart_id]),
        data=json.dumps({"changes": {"type": "surface3d"}}),
        content_type="application/json",
    )
    assert response.status_code == 400
    assert GalleryEntry.objects.get(chart_id=chart_id).is_3d is False


def test_csrf_middleware_is_installed() -> None:
    """Keep CSRF checks on for any form or session view mounted later."""

    assert "django.middleware.csrf.CsrfViewMiddleware" in settings.MIDDLEWARE


@pytest.mark.django_db
def test_json_endpoints_accept_posts_without_csrf_token(store, sales_dataset) -> None:
    """Serve the token-less JSON POST endpoints under enforced CSRF checks."""

    csrf_client = Client(enforce_csrf_checks=True)
    chart_id = _create(store, sales_dataset)

    updated = csrf_client.post(
        reverse("core:chart_update", args=[chart_id]),
        data=json.dumps({"changes": {"chartTitle": "Renamed"}}),
        content_type="application/json",
    )
    assert updated.status_code == 200

    preview = csrf_client.post(
        reverse("core:chart_preview"),
        data=json.dumps({"config": {"type": "bar", "xAxis": "Month", "yAxis": "Revenue"}, "rows": []}),
        content_type="application/json",
    )
    assert preview.status_code != 403

    assert csrf_client.post(reverse("core:chart_delete", args=[chart_id])).status_code == 200
