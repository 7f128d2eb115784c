from __future__ import annotations

# ruff: noqa: S101
from pathlib import Path
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from pytest_django.fixtures import SettingsWrapper
from rest_framework import status
from rest_framework.test import APIClient

from heatmap.exceptions import EncodeError
from heatmap.render.colormap import HOT_COLOR
from heatmap.render.raster import decode_png

from .fakes import LAND, WATER, grid_bytes, grid_zip, solid_image

RENDER_URL = "/api/v1/heatmap/render"
SAMPLES = [70, 70, 70, 70, 70, 70, 70, -999]


def _payload(
    *,
    samples: list[int] = SAMPLES,
    zip_bytes: bytes | None = None,
    map_bytes: bytes | None = None,
    **fields: object,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "map": SimpleUploadedFile(
            "map.jpg", map_bytes or solid_image(4, 2), "image/png"
        ),
        "zip": SimpleUploadedFile(
            "sst.zip",
            (
                zip_bytes
                if zip_bytes is not None
                else grid_zip(grid_bytes(samples))
            ),
            "application/zip",
        ),
    }
    payload.update(fields)
    return payload


def _body(response: object) -> bytes:
    return b"".join(response.streaming_content)  # type: ignore[attr-defined]


def test_render_returns_png(small_grid_settings: SettingsWrapper) -> None:
    client = APIClient()
    resp = client.post(RENDER_URL, _payload(), format="multipart")
    assert resp.status_code == status.HTTP_200_OK
    assert resp["Content-Type"] == "image/png"
    assert resp["X-Heatmap-Range-Min"] == "70.0"
    assert resp["X-Heatmap-Range-Max"] == "70.0"
    image = decode_png(_body(resp))
    assert (image.width, image.height) == (4, 2)
    assert image.pixel(0, 0) == (*HOT_COLOR, 255)
    assert image.pixel(3, 1) == (0, 0, 0, 255)
    assert list(Path(small_grid_settings.HEATMAP_WORK_DIR).iterdir()) == []


def test_render_with_size_and_water_mode(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL,
        _payload(
            map_bytes=solid_image(4, 2, LAND), width=8, height=4, mode="water"
        ),
        format="multipart",
    )
    assert resp.status_code == status.HTTP_200_OK
    image = decode_png(_body(resp))
    assert (image.width, image.height) == (8, 4)
    assert image.pixel(5, 3) == LAND


def test_render_water_mode_on_water_map(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL,
        _payload(map_bytes=solid_image(4, 2, WATER), mode="water"),
        format="multipart",
    )
    image = decode_png(_body(resp))
    assert image.pixel(0, 0) == (*HOT_COLOR, 255)


def test_missing_file_is_client_error(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    payload = _payload()
    payload.pop("zip")
    resp = client.post(RENDER_URL, payload, format="multipart")
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    body = resp.json()
    assert body["status"] == 1
    assert body["message"] == "Files are missing."
    assert body["data"] is None
    assert body["errors"] == {"code": "missing_input"}


def test_archive_without_grid_entry(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL,
        _payload(zip_bytes=grid_zip(b"x", name="readme.txt")),
        format="multipart",
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["message"] == "No .grid file found in ZIP."
    assert resp.json()["errors"] == {"code": "no_grid_entry"}


def test_malformed_grid_is_rejected(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL,
        _payload(zip_bytes=grid_zip(grid_bytes(SAMPLES) + b"\x01")),
        format="multipart",
    )
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert resp.json()["errors"] == {"code": "malformed_grid"}
    assert list(Path(small_grid_settings.HEATMAP_WORK_DIR).iterdir()) == []


def test_unreadable_map_is_client_error(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL, _payload(map_bytes=b"not an image"), format="multipart"
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["errors"] == {"code": "invalid_image"}


def test_oversized_output_is_rejected(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(
        RENDER_URL, _payload(width=500, height=500), format="multipart"
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["errors"] == {"code": "invalid_size"}


def test_invalid_mode_uses_validation_envelope(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    resp = client.post(RENDER_URL, _payload(mode="land"), format="multipart")
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    body = resp.json()
    assert body["status"] == 1
    assert "mode" in body["errors"]


def test_encode_failure_is_server_error(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    with patch(
        "heatmap.services.write_png",
        side_effect=EncodeError("Error writing output image."),
    ):
        resp = client.post(RENDER_URL, _payload(), format="multipart")
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json()["message"] == "Error writing output image."
    assert resp.json()["errors"] == {"code": "encode_failed"}


def test_cors_headers_and_preflight(
    small_grid_settings: SettingsWrapper,
) -> None:
    client = APIClient()
    origin = "https://maps.example.org"
    preflight = client.options(
        RENDER_URL,
        HTTP_ORIGIN=origin,
        HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
    )
    assert preflight.status_code == status.HTTP_200_OK
    assert preflight["Access-Control-Allow-Origin"] == "*"
    assert "POST" in preflight["Access-Control-Allow-Methods"]

    resp = client.post(
        RENDER_URL, _payload(), format="multipart", HTTP_ORIGIN=origin
    )
    assert resp.status_code == status.HTTP_200_OK
    assert resp["Access-Control-Allow-Origin"] == "*"
    assert "X-Heatmap-Range-Min" in resp["Access-Control-Expose-Headers"]


def test_upload_form_served() -> None:
    client = APIClient()
    resp = client.get("/api/v1/heatmap/")
    assert resp.status_code == status.HTTP_200_OK
    content = resp.content.decode()
    assert 'name="map"' in content
    assert 'name="zip"' in content
    assert RENDER_URL in content
