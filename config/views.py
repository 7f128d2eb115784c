"""Project-level non-DRF views.

The root endpoint doubles as a configuration check: it validates the
HEATMAP_* settings and reports the grid layout and rendering defaults a
deployment will use, alongside links to the render endpoint and the docs.
"""

from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.urls import reverse

from heatmap.conf import load_heatmap_settings
from heatmap.exceptions import HeatmapConfigError

SERVICE_NAME = "sst-heatmap"


def _links() -> dict[str, str]:
    return {
        "render": reverse("heatmap-render"),
        "upload_form": reverse("heatmap-upload-form"),
        "schema": reverse("schema"),
        "docs": reverse("swagger-ui"),
        "redoc": reverse("redoc"),
    }


def home(request: HttpRequest) -> JsonResponse:
    """Return the active heatmap configuration, or 503 when it is invalid."""

    try:
        config = load_heatmap_settings()
    except HeatmapConfigError as exc:
        return JsonResponse(
            {
                "ok": False,
                "service": SERVICE_NAME,
                "error": {"code": exc.code, "message": exc.message},
                "links": _links(),
            },
            status=503,
        )

    return JsonResponse(
        {
            "ok": True,
            "service": SERVICE_NAME,
            "grid": {
                "width": config.grid.width,
                "height": config.grid.height,
                "dtype": config.grid.dtype,
                "byte_order": config.grid.byte_order,
                "header_bytes": config.grid.header_bytes,
                "suffix": config.grid_suffix,
            },
            "defaults": {
                "width": config.output_width,
                "height": config.output_height,
                "mode": config.mode,
                "policy": config.policy.kind,
            },
            "links": _links(),
        }
    )
