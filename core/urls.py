"""URL configuration for core views."""

from __future__ import annotations

from django.urls import path

from core import views

app_name = "core"

urlpatterns = [
    path("api/chart-kinds/", views.chart_kinds, name="chart_kinds"),
    path("api/charts/", views.chart_list, name="chart_list"),
    path("api/charts/preview/", views.chart_preview, name="chart_preview"),
    path("api/charts/<str:chart_id>/", views.chart_detail, name="chart_detail"),
    path("api/charts/<str:chart_id>/update/", views.chart_update, name="chart_update"),
    path("api/charts/<str:chart_id>/delete/", views.chart_delete, name="chart_delete"),
    path("api/charts/<str:chart_id>/download/", views.chart_download, name="chart_download"),
]
