"""Configuration store for finalized charts.

The store coordinates Django persistence (ORM, transactions) with the pure
charting modules. Every operation returns a `StoreResult` instead of raising,
so callers always get either a value or an explicit failure reason.

Known asymmetry: `update` rewrites the stored configuration but leaves the
gallery entry as it was written at creation time, unless the caller opts into
`resync_metadata`.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from functools import lru_cache
from typing import Literal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone

from analysis.chart_kinds import DEFAULT_CATALOG, ChartCatalog
from core.charting.config_codec import decode_chart_configuration, encode_chart_configuration
from core.charting.schema import (
    CONFIGURATION_FIELDS,
    SERIES_FIELDS,
    ChartConfiguration,
    default_title,
    normalize_configuration,
)
from core.charting.validator import is_axis_valid
from core.models import GalleryEntry, StoredChart
from core.remote import RemoteChartMirror, mirror_from_settings

logger = logging.getLogger(__name__)

StoreFailureReason = Literal["invalid", "not_found", "conflict", "storage_error", "corrupt"]
GallerySort = Literal["newest", "oldest", "most_viewed", "most_downloaded", "title"]

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 7

_GALLERY_ORDERING: dict[str, tuple[str, ...]] = {
    "newest": ("-id",),
    "oldest": ("id",),
    "most_viewed": ("-views", "-id"),
    "most_downloaded": ("-downloads", "-id"),
    "title": ("title", "-id"),
}


@dataclass(frozen=True, slots=True)
class ChartMetadata:
    """Lightweight gallery listing record for a stored chart."""

    id: str
    title: str
    type: str
    file: str
    created: datetime
    is_3d: bool
    views: int = 0
    downloads: int = 0

    @classmethod
    def from_entry(cls, entry: GalleryEntry) -> ChartMetadata:
        """Build metadata from a GalleryEntry row."""

        return cls(
            id=entry.chart_id,
            title=entry.title,
            type=entry.chart_type,
            file=entry.file_name,
            created=entry.created,
            is_3d=entry.is_3d,
            views=entry.views,
            downloads=entry.downloads,
        )

    def as_json(self) -> dict[str, object]:
        """Return a JSON-serializable representation."""

        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "file": self.file,
            "created": self.created.isoformat(),
            "is3D": self.is_3d,
            "views": self.views,
            "downloads": self.downloads,
        }


@dataclass(frozen=True, slots=True)
class StoreResult:
    """Outcome of a configuration store operation.

    Args:
        ok: True when the operation succeeded.
        chart_id: Chart id the operation applied to.
        config: Stored configuration (create/load/update).
        version: Stored version after the operation.
        entries: Gallery listing (list).
        reason: Failure category when `ok` is False.
        error: Human-readable failure message.
    """

    ok: bool
    chart_id: str | None = None
    config: ChartConfiguration | None = None
    version: int | None = None
    entries: tuple[ChartMetadata, ...] = ()
    reason: StoreFailureReason | None = None
    error: str | None = None

    @classmethod
    def failure(cls, reason: StoreFailureReason, error: str, *, chart_id: str | None = None) -> StoreResult:
        """Build a failed result."""

        return cls(ok=False, chart_id=chart_id, reason=reason, error=error)


def generate_chart_id(*, now_ms: int | None = None) -> str:
    """Return a collision-resistant chart id: time-based prefix plus random suffix."""

    millis = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"chart-{millis}-{suffix}"


class ChartConfigurationStore:
    """Persist, list, and edit finalized chart configurations.

    Args:
        catalog: Chart kind catalog used for normalization and display names.
        mirror: Optional remote mirror receiving created charts.
        resync_metadata_on_update: Default for `update(..., resync_metadata=...)`.
        id_factory: Chart id generator.
    """

    def __init__(
        self,
        *,
        catalog: ChartCatalog = DEFAULT_CATALOG,
        mirror: RemoteChartMirror | None = None,
        resync_metadata_on_update: bool = False,
        id_factory: Callable[[], str] = generate_chart_id,
    ) -> None:
        self.catalog = catalog
        self.mirror = mirror
        self.resync_metadata_on_update = resync_metadata_on_update
        self._id_factory = id_factory

    def create(self, config: ChartConfiguration) -> StoreResult:
        """Store a finalized configuration under a new id.

        The local write is authoritative: if it fails the operation fails. The
        remote mirror is queued once the surrounding transaction commits and
        never affects the result.
        """

        config = normalize_configuration(config, catalog=self.catalog)
        if config.kind is None:
            return StoreResult.failure("invalid", "A chart type is required to store a chart.")

        chart_id = self._id_factory()
        payload = encode_chart_configuration(config)
        try:
            with transaction.atomic():
                stored = StoredChart.objects.create(chart_id=chart_id, config=payload)
                GalleryEntry.objects.create(
                    chart=stored,
                    title=config.title or default_title(config),
                    chart_type=self.catalog.display_name(config.kind),
                    chart_kind=str(config.kind),
                    file_name=config.file_name,
                    created=config.created_at or timezone.now(),
                    is_3d=config.is_3d,
                )
        except (DatabaseError, ValidationError) as exc:
            logger.error("Failed to store chart configuration %s: %s", chart_id, exc)
            return StoreResult.failure("storage_error", f"Failed to save chart configuration: {exc}")

        transaction.on_commit(lambda: self._mirror_created(config, payload))
        return StoreResult(ok=True, chart_id=chart_id, config=config, version=stored.version)

    def load(self, chart_id: str) -> StoreResult:
        """Return the stored configuration for an id."""

        try:
            stored = StoredChart.objects.filter(chart_id=chart_id).first()
        except DatabaseError as exc:
            logger.error("Failed to load chart configuration %s: %s", chart_id, exc)
            return StoreResult.failure("storage_error", "Failed to load chart configuration.", chart_id=chart_id)
        if stored is None:
            return StoreResult.failure("not_found", "Chart configuration not found.", chart_id=chart_id)
        try:
            config = decode_chart_configuration(stored.config)
        except ValueError as exc:
            logger.error("Stored chart configuration %s is unreadable: %s", chart_id, exc)
            return StoreResult.failure("corrupt", "Chart configuration is unreadable.", chart_id=chart_id)
        return StoreResult(ok=True, chart_id=chart_id, config=config, version=stored.version)

    def update(
        self,
        chart_id: str,
        changes: Mapping[str, object],
        *,
        expected_version: int | None = None,
        resync_metadata: bool | None = None,
    ) -> StoreResult:
        """Merge field changes into a stored configuration.

        Args:
            chart_id: Chart to update.
            changes: ChartConfiguration field names mapped to new values; other
                fields keep their stored values. Axis columns and series data
                cannot change, and the result must still have valid axes for
                its kind, otherwise the update is `invalid`.
            expected_version: When given, the update is rejected with a
                `conflict` result unless the stored version matches.
                Without it the last writer wins.
            resync_metadata: Refresh the gallery title/type/3D flag from the
                updated configuration. Defaults to the store setting.

        Returns:
            StoreResult with the updated configuration and new version.
        """

        unknown = set(changes) - CONFIGURATION_FIELDS
        if unknown:
            return StoreResult.failure("invalid", f"Unknown configuration fields: {sorted(unknown)}.", chart_id=chart_id)
        values = dict(changes)
        if values.get("kind") is not None:
            spec = self.catalog.get(values["kind"])  # type: ignore[arg-type]
            if spec is None:
                return StoreResult.failure("invalid", f"Unknown chart type: {values['kind']!r}.", chart_id=chart_id)
            values["kind"] = spec.kind
        resync = self.resync_metadata_on_update if resync_metadata is None else resync_metadata

        try:
            with transaction.atomic():
                stored = StoredChart.objects.select_for_update().filter(chart_id=chart_id).first()
                if stored is None:
                    return StoreResult.failure("not_found", "Chart configuration not found.", chart_id=chart_id)
                if expected_version is not None and stored.version != expected_version:
                    return StoreResult.failure(
                        "conflict",
                        f"Chart was modified elsewhere (version {stored.version}, expected {expected_version}).",
                        chart_id=chart_id,
                    )
                try:
                    current = decode_chart_configuration(stored.config)
                except ValueError as exc:
                    return StoreResult.failure("corrupt", f"Chart configuration is unreadable: {exc}", chart_id=chart_id)
                rebound = sorted(
                    name for name in SERIES_FIELDS & values.keys() if values[name] != getattr(current, name)
                )
                if rebound:
                    return StoreResult.failure(
                        "invalid",
                        f"Axis columns and series data cannot change without the source dataset: {rebound}.",
                        chart_id=chart_id,
                    )
                updated = normalize_configuration(replace(current, **values), catalog=self.catalog)
                if not is_axis_valid(updated, catalog=self.catalog):
                    return StoreResult.failure(
                        "invalid",
                        f"A {self.catalog.display_name(updated.kind)} needs a Z-axis column; "
                        "create it again from the source dataset.",
                        chart_id=chart_id,
                    )
                stored.config = encode_chart_configuration(updated)
                stored.version += 1
                stored.save(update_fields=["config", "version", "updated_at"])
                if resync:
                    GalleryEntry.objects.filter(chart=stored).update(
                        title=updated.title or default_title(updated),
                        chart_type=self.catalog.display_name(updated.kind),
                        chart_kind=str(updated.kind or ""),
                        is_3d=updated.is_3d,
                    )
        except DatabaseError as exc:
            logger.error("Failed to update chart configuration %s: %s", chart_id, exc)
            return StoreResult.failure("storage_error", "Failed to update chart configuration.", chart_id=chart_id)
        return StoreResult(ok=True, chart_id=chart_id, config=updated, version=stored.version)

    def list(
        self,
        *,
        search: str | None = None,
        chart_type: str | None = None,
        sort: GallerySort = "newest",
    ) -> StoreResult:
        """Return gallery entries, newest first by default.

        Args:
            search: Case-insensitive title substring filter.
            chart_type: Chart kind id or display name filter ("all" or None disables it).
            sort: Ordering of the entries.
        """

        ordering = _GALLERY_ORDERING.get(sort)
        if ordering is None:
            return StoreResult.failure("invalid", f"Unsupported gallery sort: {sort!r}.")
        entries = GalleryEntry.objects.all()
        if search:
            entries = entries.filter(title__icontains=search.strip())
        if chart_type and chart_type != "all":
            entries = entries.filter(Q(chart_kind__iexact=chart_type) | Q(chart_type__iexact=chart_type))
        try:
            rows = tuple(ChartMetadata.from_entry(entry) for entry in entries.order_by(*ordering))
        except DatabaseError as exc:
            logger.error("Failed to list gallery entries: %s", exc)
            return StoreResult.failure("storage_error", "Failed to load the chart gallery.")
        return StoreResult(ok=True, entries=rows)

    def count(self) -> int:
        """Return the number of gallery entries."""

        return GalleryEntry.objects.count()

    def delete(self, chart_id: str) -> StoreResult:
        """Remove a stored configuration and its gallery entry."""

        try:
            deleted, _ = StoredChart.objects.filter(chart_id=chart_id).delete()
        except DatabaseError as exc:
            logger.error("Failed to delete chart configuration %s: %s", chart_id, exc)
            return StoreResult.failure("storage_error", "Failed to delete chart configuration.", chart_id=chart_id)
        if not deleted:
            return StoreResult.failure("not_found", "Chart configuration not found.", chart_id=chart_id)
        return StoreResult(ok=True, chart_id=chart_id)

    def record_view(self, chart_id: str) -> StoreResult:
        """Increment the gallery view counter for a chart."""

        return self._increment(chart_id, "views")

    def record_download(self, chart_id: str) -> StoreResult:
        """Increment the gallery download counter for a chart."""

        return self._increment(chart_id, "downloads")

    def _increment(self, chart_id: str, field_name: str) -> StoreResult:
        try:
            updated = GalleryEntry.objects.filter(chart_id=chart_id).update(**{field_name: F(field_name) + 1})
        except DatabaseError as exc:
            logger.error("Failed to update %s for chart %s: %s", field_name, chart_id, exc)
            return StoreResult.failure("storage_error", "Failed to update chart statistics.", chart_id=chart_id)
        if not updated:
            return StoreResult.failure("not_found", "Chart configuration not found.", chart_id=chart_id)
        return StoreResult(ok=True, chart_id=chart_id)

    def _mirror_created(self, config: ChartConfiguration, payload: dict[str, object]) -> None:
        """Queue the remote copy of a newly created chart."""

        if self.mirror is None:
            return
        try:
            self.mirror.submit(
                chart_type=str(config.kind),
                from_excel_file=config.file_name or "unknown",
                chart_config=payload,
            )
        except RuntimeError as exc:
            logger.warning("Could not queue remote chart save: %s", exc)


@lru_cache(maxsize=1)
def get_default_store() -> ChartConfigurationStore:
    """Return the process-wide store configured from settings."""

    return ChartConfigurationStore(
        mirror=mirror_from_settings(),
        resync_metadata_on_update=bool(getattr(settings, "CHARTS_RESYNC_GALLERY_ON_UPDATE", False)),
    )

