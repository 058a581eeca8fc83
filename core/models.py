"""Database models for stored chart configurations.

Two tables back the configuration store:

- `StoredChart` holds the full configuration payload under its generated id,
- `GalleryEntry` is a denormalized, lightweight listing row written once at
  creation time and used by the chart gallery.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models


class StoredChart(models.Model):
    """A persisted chart configuration.

    Attributes:
        chart_id: Generated identifier (`chart-<epoch ms>-<suffix>`).
        config: Versioned ChartConfiguration payload.
        version: Incremented on every write; used for optional conflict checks.
    """

    chart_id = models.CharField(max_length=64, primary_key=True)
    config = models.JSONField(
        default=dict,
        help_text="Versioned ChartConfiguration payload used to recompile the plot.",
    )
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        """Return a concise display string."""

        return f"StoredChart({self.chart_id})"


class GalleryEntry(models.Model):
    """Gallery listing metadata for a stored chart.

    The title/type/3D fields copy the chart configuration at creation time and
    are not refreshed when the chart is edited unless the caller asks for it.
    """

    chart = models.OneToOneField(StoredChart, on_delete=models.CASCADE, related_name="gallery_entry")
    title = models.CharField(max_length=200)
    chart_type = models.CharField(max_length=60, help_text="Chart kind display name, e.g. 'Bar Chart'.")
    chart_kind = models.CharField(max_length=20)
    file_name = models.CharField(max_length=255, blank=True)
    created = models.DateTimeField()
    is_3d = models.BooleanField(default=False)
    views = models.PositiveIntegerField(default=0)
    downloads = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-id"]
        verbose_name_plural = "gallery entries"

    def __str__(self) -> str:
        """Return the chart title for display contexts."""

        return self.title

    def save(self, *args, **kwargs) -> None:
        """Save the entry, rejecting a blank title.

        Raises:
            ValidationError: When the title is empty.
        """

        if not self.title.strip():
            raise ValidationError("GalleryEntry.title must be a non-empty string.")
        super().save(*args, **kwargs)
