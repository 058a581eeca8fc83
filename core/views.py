"""JSON views for the chart gallery and stored chart configurations."""

from __future__ import annotations

import json
from typing import Any

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from analysis.chart_kinds import DEFAULT_CATALOG
from analysis.columns import Dataset
from core.charting.compiler import CompileOptions, render_plot
from core.charting.config_codec import (
    decode_chart_configuration,
    encode_chart_configuration,
    payload_field_changes,
)
from core.store import StoreResult, get_default_store

_STATUS_BY_REASON = {
    "invalid": 400,
    "not_found": 404,
    "conflict": 409,
    "corrupt": 422,
    "storage_error": 503,
}


def _compile_options() -> CompileOptions:
    return CompileOptions(missing_as_none=bool(getattr(settings, "CHARTS_MISSING_AS_NONE", False)))


def _failure_response(result: StoreResult) -> JsonResponse:
    """Translate a failed StoreResult into a JSON error response."""

    status = _STATUS_BY_REASON.get(result.reason or "", 500)
    return JsonResponse({"ok": False, "reason": result.reason, "error": result.error}, status=status)


def _read_json(request: HttpRequest) -> dict[str, Any] | None:
    """Return the decoded JSON object body, or None when it is not an object."""

    try:
        body = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


@require_GET
def chart_kinds(request: HttpRequest) -> JsonResponse:
    """Return the chart kind catalog."""

    return JsonResponse(
        {
            "kinds": [
                {
                    "id": str(spec.kind),
                    "name": spec.name,
                    "description": spec.description,
                    "bestFor": spec.best_for,
                    "is3D": spec.is_3d,
                }
                for spec in DEFAULT_CATALOG
            ]
        }
    )


@require_GET
def chart_list(request: HttpRequest) -> JsonResponse:
    """Return gallery entries filtered by `q` and `type`, ordered by `sort`."""

    result = get_default_store().list(
        search=(request.GET.get("q") or "").strip() or None,
        chart_type=(request.GET.get("type") or "").strip() or None,
        sort=(request.GET.get("sort") or "newest").strip(),  # type: ignore[arg-type]
    )
    if not result.ok:
        return _failure_response(result)
    return JsonResponse(
        {"ok": True, "count": len(result.entries), "charts": [entry.as_json() for entry in result.entries]}
    )


@require_GET
def chart_detail(request: HttpRequest, chart_id: str) -> JsonResponse:
    """Return a stored configuration and its recompiled plot; counts as a view."""

    store = get_default_store()
    result = store.load(chart_id)
    if not result.ok or result.config is None:
        return _failure_response(result)
    store.record_view(chart_id)
    rendered = render_plot(result.config, catalog=store.catalog, options=_compile_options())
    return JsonResponse(
        {
            "ok": True,
            "id": chart_id,
            "version": result.version,
            "config": encode_chart_configuration(result.config),
            "plot": rendered.spec,
            "error": rendered.error,
        }
    )


@csrf_exempt
@require_POST
def chart_update(request: HttpRequest, chart_id: str) -> JsonResponse:
    """Apply a partial configuration payload to a stored chart.

    Body: `{"changes": {...payload keys...}, "version": n, "resyncMetadata": bool}`;
    `version` and `resyncMetadata` are optional.
    """

    body = _read_json(request)
    if body is None or not isinstance(body.get("changes"), dict):
        return JsonResponse({"ok": False, "reason": "invalid", "error": "Expected a JSON object with `changes`."}, status=400)
    expected_version = body.get("version")
    if expected_version is not None and not isinstance(expected_version, int):
        return JsonResponse({"ok": False, "reason": "invalid", "error": "`version` must be an integer."}, status=400)

    store = get_default_store()
    loaded = store.load(chart_id)
    if not loaded.ok or loaded.config is None:
        return _failure_response(loaded)
    try:
        changes = payload_field_changes(loaded.config, body["changes"])
    except ValueError as exc:
        return JsonResponse({"ok": False, "reason": "invalid", "error": str(exc)}, status=400)

    resync = body.get("resyncMetadata")
    result = store.update(
        chart_id,
        changes,
        expected_version=expected_version,
        resync_metadata=resync if isinstance(resync, bool) else None,
    )
    if not result.ok or result.config is None:
        return _failure_response(result)
    return JsonResponse(
        {
            "ok": True,
            "id": chart_id,
            "version": result.version,
            "config": encode_chart_configuration(result.config),
        }
    )


@csrf_exempt
@require_POST
def chart_delete(request: HttpRequest, chart_id: str) -> JsonResponse:
    """Delete a stored chart and its gallery entry."""

    result = get_default_store().delete(chart_id)
    if not result.ok:
        return _failure_response(result)
    return JsonResponse({"ok": True, "id": chart_id})


@require_GET
def chart_download(request: HttpRequest, chart_id: str) -> HttpResponse:
    """Return the stored configuration as a JSON attachment; counts as a download."""

    store = get_default_store()
    result = store.load(chart_id)
    if not result.ok or result.config is None:
        return _failure_response(result)
    store.record_download(chart_id)
    response = HttpResponse(
        json.dumps(encode_chart_configuration(result.config), indent=2),
        content_type="application/json",
    )
    response["Content-Disposition"] = f'attachment; filename="{chart_id}.json"'
    return response


@csrf_exempt
@require_POST
def chart_preview(request: HttpRequest) -> JsonResponse:
    """Compile a configuration payload against posted rows without storing it.

    Body: `{"config": {...payload...}, "rows": [{...}, ...], "fileName": "..."}`.
    """

    body = _read_json(request)
    if body is None or not isinstance(body.get("config"), dict) or not isinstance(body.get("rows"), list):
        return JsonResponse(
            {"ok": False, "reason": "invalid", "error": "Expected a JSON object with `config` and `rows`."},
            status=400,
        )
    try:
        config = decode_chart_configuration(body["config"])
    except ValueError as exc:
        return JsonResponse({"ok": False, "reason": "invalid", "error": str(exc)}, status=400)
    rows = [row for row in body["rows"] if isinstance(row, dict)]
    dataset = Dataset.from_records(rows, file_name=str(body.get("fileName") or ""))
    rendered = render_plot(config, dataset, options=_compile_options())
    return JsonResponse({"ok": rendered.spec is not None, "plot": rendered.spec, "error": rendered.error})
