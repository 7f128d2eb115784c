"""Heatmap API endpoints.

Authentication: none; the render endpoint is public.
Success returns the PNG body directly. Failures use
`config.api.responses.coded_error_response`, either directly or through
the project exception handler for `HeatmapError`:

    {"status": 1, "message": "<str>", "data": null,
     "errors": {"code": "<str>"}}
"""

from __future__ import annotations

from typing import cast

from django.http import FileResponse, HttpRequest, HttpResponse
from django.shortcuts import render
from drf_spectacular.utils import OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from config.api.openapi import error_envelope_serializer
from config.api.responses import coded_error_response

from .conf import load_heatmap_settings
from .exceptions import ERROR_CODES
from .render.compositor import CompositeMode
from .serializers import RenderRequestSerializer, RenderUploadSchemaSerializer
from .services import render_uploads, resolve_options

heatmap_error_response = error_envelope_serializer(
    "HeatmapErrorResponse", codes=ERROR_CODES
)


class HeatmapRenderView(APIView):
    """Render a sea-surface-temperature heatmap from two uploads.

    Multipart parts: `map` (base image) and `zip` (archive with a .grid
    entry). Optional fields: `width`, `height`, `mode` (full or water).
    """

    authentication_classes: list[type] = []
    permission_classes = [AllowAny]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        request={"multipart/form-data": RenderUploadSchemaSerializer},
        responses={
            (200, "image/png"): OpenApiResponse(
                response=OpenApiTypes.BINARY,
                description="Rendered heatmap PNG",
            ),
            400: heatmap_error_response,
            422: heatmap_error_response,
            500: heatmap_error_response,
        },
    )
    def post(self, request: Request) -> HttpResponse | Response:
        """Return the rendered PNG.

        Side effects: uploads are staged in a per-request scratch directory
        that is removed before the response is sent.
        """

        serializer = RenderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        config = load_heatmap_settings()
        try:
            options = resolve_options(
                config,
                width=params.get("width"),
                height=params.get("height"),
                mode=cast("CompositeMode | None", params.get("mode")),
            )
        except ValueError as exc:
            return coded_error_response(str(exc), "invalid_size")

        # HeatmapError propagates to config.api.exceptions
        result = render_uploads(
            request.FILES.get("map"),
            request.FILES.get("zip"),
            options=options,
            config=config,
        )

        response = FileResponse(
            result.stream,
            content_type="image/png",
            filename="output.png",
        )
        response["X-Heatmap-Range-Min"] = str(result.value_range.min)
        response["X-Heatmap-Range-Max"] = str(result.value_range.max)
        response["X-Heatmap-Skipped-Pixels"] = str(result.skipped)
        return response


def upload_form(request: HttpRequest) -> HttpResponse:
    """Serve the browser upload form posting to the render endpoint."""

    return render(request, "heatmap/upload.html")
