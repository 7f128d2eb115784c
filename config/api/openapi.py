"""drf-spectacular helpers for documenting the project's error envelope.

Every failure leaves the API wrapped in the same JSON envelope, built by
`config.api.responses` or by the global DRF exception handler. Render
failures put a single code under ``errors``; validation failures put the
per-field messages there.
"""

from __future__ import annotations

from collections.abc import Sequence

from drf_spectacular.utils import inline_serializer
from rest_framework import serializers
from rest_framework.serializers import Serializer


def error_envelope_serializer(
    name: str, *, codes: Sequence[str] = ()
) -> Serializer:
    """Build an OpenAPI schema matching `coded_error_response`."""

    help_text = "Field errors, or {'code': <code>} for render failures."
    if codes:
        help_text += " Codes: " + ", ".join(codes) + "."
    return inline_serializer(
        name=name,
        fields={
            "status": serializers.IntegerField(),
            "message": serializers.CharField(),
            "data": serializers.JSONField(allow_null=True),
            "errors": serializers.JSONField(
                allow_null=True, help_text=help_text
            ),
        },
    )
