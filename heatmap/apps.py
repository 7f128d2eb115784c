from __future__ import annotations

from django.apps import AppConfig
from django.conf import settings


class HeatmapConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "heatmap"
    verbose_name = "SST heatmap"

    def ready(self) -> None:
        from PIL import Image

        max_pixels = getattr(settings, "HEATMAP_MAX_IMAGE_PIXELS", None)
        if max_pixels:
            Image.MAX_IMAGE_PIXELS = int(max_pixels)
