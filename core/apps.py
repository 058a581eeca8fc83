"""App configuration for the chart store app."""

from __future__ import annotations

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuration for the `core` app holding stored charts and the gallery."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Charts"
