"""Create stored chart and gallery tables."""

from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    """Initial schema for the configuration store."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StoredChart",
            fields=[
                ("chart_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                (
                    "config",
                    models.JSONField(
                        default=dict,
                        help_text="Versioned ChartConfiguration payload used to recompile the plot.",
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="GalleryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                (
                    "chart_type",
                    models.CharField(help_text="Chart kind display name, e.g. 'Bar Chart'.", max_length=60),
                ),
                ("chart_kind", models.CharField(max_length=20)),
                ("file_name", models.CharField(blank=True, max_length=255)),
                ("created", models.DateTimeField()),
                ("is_3d", models.BooleanField(default=False)),
                ("views", models.PositiveIntegerField(default=0)),
                ("downloads", models.PositiveIntegerField(default=0)),
                (
                    "chart",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="gallery_entry",
                        to="core.storedchart",
                    ),
                ),
            ],
            options={
                "ordering": ["-id"],
                "verbose_name_plural": "gallery entries",
            },
        ),
    ]
