from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

import numpy as np
from PIL import Image, UnidentifiedImageError

from heatmap.exceptions import InvalidImageError

from .raster import PixelBuffer

logger = logging.getLogger(__name__)


def load_base_image(source: str | Path | IO[bytes]) -> PixelBuffer:
    """Decode the uploaded base map into an RGBA pixel buffer."""

    try:
        with Image.open(source) as image:
            rgba = image.convert("RGBA")
    except Image.DecompressionBombError as exc:
        raise InvalidImageError(
            "Base map exceeds the allowed pixel count."
        ) from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError("Base map is not a readable image.") from exc

    pixels = np.array(rgba, dtype=np.uint8)
    logger.info(
        "heatmap.base_image.loaded width=%s height=%s",
        rgba.width,
        rgba.height,
    )
    return PixelBuffer(width=rgba.width, height=rgba.height, pixels=pixels)
