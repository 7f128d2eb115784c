from __future__ import annotations

# ruff: noqa: S101
from decimal import Decimal
from unittest.mock import patch

from django.test import Client
from pytest_django.fixtures import SettingsWrapper
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from config.api.exceptions import _to_json_value, custom_exception_handler
from config.api.responses import coded_error_response, error_response
from heatmap.exceptions import MalformedGridError


def test_error_response_payload() -> None:
    resp = error_response(
        "Bad request",
        errors={"field": ["missing"]},
        status_code=418,
    )
    assert resp.status_code == 418
    assert resp.data["status"] == 1
    assert resp.data["message"] == "Bad request"
    assert resp.data["data"] is None
    assert resp.data["errors"] == {"field": ["missing"]}


def test_coded_error_response_payload() -> None:
    resp = coded_error_response("Too big", "invalid_size")
    assert resp.status_code == 400
    assert resp.data["errors"] == {"code": "invalid_size"}
    assert resp.data["data"] is None


def test_custom_exception_handler_renders_heatmap_errors() -> None:
    exc = MalformedGridError("Grid holds 3 samples, expected 4x2=8.")
    resp = custom_exception_handler(exc, {})
    assert resp.status_code == 422
    assert resp.data["status"] == 1
    assert resp.data["message"] == exc.message
    assert resp.data["errors"] == {"code": "malformed_grid"}


def test_custom_exception_handler_returns_500_on_unhandled() -> None:
    with patch("rest_framework.views.exception_handler", return_value=None):
        resp = custom_exception_handler(Exception("boom"), {})
    assert resp.status_code == 500
    assert resp.data["status"] == 1
    assert resp.data["message"] == "Internal server error"
    assert resp.data["data"] is None


def test_custom_exception_handler_wraps_validation_errors() -> None:
    exc = ValidationError({"width": ["Ensure this value is positive."]})
    with patch(
        "rest_framework.views.exception_handler",
        return_value=Response(exc.detail, status=400),
    ):
        resp = custom_exception_handler(exc, {})
    assert resp.status_code == 400
    assert resp.data["message"] == "Request failed"
    assert resp.data["errors"] == {
        "width": ["Ensure this value is positive."]
    }


def test_custom_exception_handler_uses_detail_message() -> None:
    with patch(
        "rest_framework.views.exception_handler",
        return_value=Response({"detail": "Not found."}, status=404),
    ):
        resp = custom_exception_handler(Exception("missing"), {})
    assert resp.status_code == 404
    assert resp.data["message"] == "Not found."


def test_to_json_value_handles_sequences() -> None:
    payload = ("ok", {"value": Decimal("1.25")})
    assert _to_json_value(payload) == ["ok", {"value": "1.25"}]


def test_home_view_returns_metadata() -> None:
    client = Client()
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["service"] == "sst-heatmap"
    assert body["links"]["render"] == "/api/v1/heatmap/render"
    assert body["links"]["docs"] == "/api/docs/"


def test_home_view_reports_active_configuration(
    settings: SettingsWrapper,
) -> None:
    settings.HEATMAP_GRID_WIDTH = 720
    settings.HEATMAP_GRID_HEIGHT = 360
    settings.HEATMAP_OUTPUT_WIDTH = None
    settings.HEATMAP_OUTPUT_HEIGHT = None
    settings.HEATMAP_COMPOSITE_MODE = "water"
    body = Client().get("/").json()
    assert body["grid"]["width"] == 720
    assert body["grid"]["height"] == 360
    assert body["grid"]["suffix"] == ".grid"
    assert body["defaults"] == {
        "width": 720,
        "height": 360,
        "mode": "water",
        "policy": "threshold",
    }


def test_home_view_flags_invalid_configuration(
    settings: SettingsWrapper,
) -> None:
    settings.HEATMAP_GRID_DTYPE = "int64"
    resp = Client().get("/")
    assert resp.status_code == 503
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "bad_config"
    assert body["links"]["render"] == "/api/v1/heatmap/render"


def test_openapi_schema_lists_render_endpoint() -> None:
    client = Client()
    resp = client.get("/api/schema/", {"format": "json"})
    assert resp.status_code == 200
    assert "/api/v1/heatmap/render" in resp.json()["paths"]


def test_metrics_endpoint_exposes_heatmap_counters() -> None:
    client = Client()
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert b"heatmap_renders_total" in resp.content
