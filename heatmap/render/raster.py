from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import IO, Final

import numpy as np
from PIL import Image

from heatmap.exceptions import EncodeError

logger = logging.getLogger(__name__)

DEFAULT_COMPRESS_LEVEL: Final[int] = 6


@dataclass
class PixelBuffer:
    """Mutable RGBA raster stored as a ``(height, width, 4)`` uint8 array."""

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        expected = (self.height, self.width, 4)
        if self.pixels.shape != expected or self.pixels.dtype != np.uint8:
            raise ValueError(
                f"Pixel array must be uint8 with shape {expected}, got "
                f"{self.pixels.dtype} {self.pixels.shape}."
            )

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def to_image(self) -> Image.Image:
        """Wrap the pixel array as a Pillow image without copying it."""

        pixels = np.ascontiguousarray(self.pixels)
        return Image.frombuffer(
            "RGBA", (self.width, self.height), pixels, "raw", "RGBA", 0, 1
        )


def write_png(
    buffer: PixelBuffer,
    stream: IO[bytes],
    *,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
) -> None:
    """Encode ``buffer`` as an RGBA PNG directly into ``stream``.

    Pillow emits IDAT chunks as it compresses, so the only full-size copy in
    memory is the pixel buffer itself.
    """

    try:
        buffer.to_image().save(
            stream, format="PNG", compress_level=compress_level
        )
    except (OSError, ValueError) as exc:
        logger.error(
            "heatmap.encode.failed width=%s height=%s error=%s",
            buffer.width,
            buffer.height,
            exc,
        )
        raise EncodeError("Error writing output image.") from exc


def encode_png(
    buffer: PixelBuffer, *, compress_level: int = DEFAULT_COMPRESS_LEVEL
) -> bytes:
    out = io.BytesIO()
    write_png(buffer, out, compress_level=compress_level)
    return out.getvalue()


def decode_png(data: bytes) -> PixelBuffer:
    with Image.open(io.BytesIO(data)) as image:
        rgba = image.convert("RGBA")
        pixels = np.array(rgba, dtype=np.uint8)
    height, width = pixels.shape[:2]
    return PixelBuffer(width=width, height=height, pixels=pixels)
