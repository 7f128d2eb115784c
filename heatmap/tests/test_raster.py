from __future__ import annotations

# ruff: noqa: S101
import io
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image

from heatmap.exceptions import EncodeError, InvalidImageError
from heatmap.render.imaging import load_base_image
from heatmap.render.raster import (
    PixelBuffer,
    decode_png,
    encode_png,
    write_png,
)

from .fakes import solid_image


def _random_buffer(width: int = 13, height: int = 7) -> PixelBuffer:
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return PixelBuffer(width=width, height=height, pixels=pixels)


def test_encode_then_decode_is_lossless() -> None:
    buffer = _random_buffer()
    data = encode_png(buffer)
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
    decoded = decode_png(data)
    assert decoded.width == buffer.width
    assert decoded.height == buffer.height
    assert np.array_equal(decoded.pixels, buffer.pixels)


def test_encoded_image_is_rgba() -> None:
    with Image.open(io.BytesIO(encode_png(_random_buffer()))) as image:
        assert image.mode == "RGBA"
        assert image.format == "PNG"


def test_encoding_is_byte_exact_reproducible() -> None:
    buffer = _random_buffer()
    assert encode_png(buffer) == encode_png(buffer)


def test_write_png_streams_compressed_data_incrementally() -> None:
    class RecordingStream(io.BytesIO):
        def __init__(self) -> None:
            super().__init__()
            self.sizes: list[int] = []

        def write(self, data: object) -> int:
            chunk = bytes(data)  # type: ignore[call-overload]
            self.sizes.append(len(chunk))
            return super().write(chunk)

    buffer = _random_buffer(256, 256)
    out = RecordingStream()
    write_png(buffer, out)
    data = out.getvalue()
    # incompressible pixels: no single write carries the whole image
    assert max(out.sizes) < len(data) // 2
    assert data == encode_png(buffer)


def test_write_png_to_stream() -> None:
    buffer = _random_buffer()
    out = io.BytesIO()
    write_png(buffer, out)
    assert out.getvalue() == encode_png(buffer)


def test_encoder_failure_raises_encode_error() -> None:
    class BrokenStream(io.RawIOBase):
        def writable(self) -> bool:
            return True

        def write(self, data: object) -> int:
            raise OSError("disk full")

    with pytest.raises(EncodeError) as excinfo:
        write_png(_random_buffer(), BrokenStream())  # type: ignore[arg-type]
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "encode_failed"


def test_pixel_buffer_validates_shape() -> None:
    with pytest.raises(ValueError):
        PixelBuffer(width=2, height=2, pixels=np.zeros((2, 2, 3), np.uint8))
    with pytest.raises(ValueError):
        PixelBuffer(width=2, height=2, pixels=np.zeros((2, 2, 4), np.int32))


def test_load_base_image_converts_jpeg_to_rgba() -> None:
    data = solid_image(5, 4, (0, 0, 255, 255), fmt="JPEG")
    buffer = load_base_image(io.BytesIO(data))
    assert buffer.width == 5
    assert buffer.height == 4
    r, g, b, a = buffer.pixel(2, 2)
    assert a == 255
    assert b > r and b > g


def test_load_base_image_rejects_garbage() -> None:
    with pytest.raises(InvalidImageError) as excinfo:
        load_base_image(io.BytesIO(b"not an image"))
    assert excinfo.value.status_code == 400


def test_load_base_image_rejects_decompression_bomb() -> None:
    data = solid_image(40, 40)
    with patch("PIL.Image.MAX_IMAGE_PIXELS", 100):
        with pytest.raises(InvalidImageError):
            load_base_image(io.BytesIO(data))
