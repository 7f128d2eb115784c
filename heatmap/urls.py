from __future__ import annotations

from django.urls import path

from .views import HeatmapRenderView, upload_form

urlpatterns = [
    path("heatmap/", upload_form, name="heatmap-upload-form"),
    path(
        "heatmap/render",
        HeatmapRenderView.as_view(),
        name="heatmap-render",
    ),
]
