"""Paint colored samples onto a base map.

Each output pixel ``(x, y)`` reads grid sample
``(floor(x * grid.width / out_w), floor(y * grid.height / out_h))`` and base
pixel ``(floor(x * base.width / out_w), floor(y * base.height / out_h))``;
the two scale factors are independent. Rows are processed in bands so the
temporaries stay proportional to ``band_rows * out_w``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Literal

import numpy as np

from heatmap.grid.decoder import SampleGrid, TemperatureRange

from .colormap import ColorPolicy, map_samples
from .raster import PixelBuffer

logger = logging.getLogger(__name__)

CompositeMode = Literal["full", "water"]

COMPOSITE_MODES: Final[tuple[str, ...]] = ("full", "water")
DEFAULT_BAND_ROWS: Final[int] = 256
OPAQUE: Final[int] = 255


@dataclass(frozen=True)
class CompositeResult:
    buffer: PixelBuffer
    written: int
    skipped: int


def nearest_indices(out_size: int, src_size: int) -> np.ndarray:
    """Source index for each of ``out_size`` output positions."""

    return (np.arange(out_size, dtype=np.int64) * src_size) // out_size


def water_mask(pixels: np.ndarray) -> np.ndarray:
    """True where blue strictly exceeds both red and green."""

    r = pixels[..., 0]
    g = pixels[..., 1]
    b = pixels[..., 2]
    return (b > r) & (b > g)


def composite(
    grid: SampleGrid,
    value_range: TemperatureRange,
    base: PixelBuffer,
    *,
    out_width: int,
    out_height: int,
    policy: ColorPolicy,
    mode: CompositeMode = "full",
    band_rows: int = DEFAULT_BAND_ROWS,
) -> CompositeResult:
    if out_width <= 0 or out_height <= 0:
        raise ValueError(
            f"Output size must be positive, got {out_width}x{out_height}."
        )
    if mode not in COMPOSITE_MODES:
        raise ValueError(f"Unknown composite mode: {mode}")

    grid_cols = nearest_indices(out_width, grid.width)
    grid_rows = nearest_indices(out_height, grid.height)
    base_cols = nearest_indices(out_width, base.width)
    base_rows = nearest_indices(out_height, base.height)
    sample_count = grid.data.size

    out = np.empty((out_height, out_width, 4), dtype=np.uint8)
    written = 0
    skipped = 0

    for top in range(0, out_height, band_rows):
        bottom = min(top + band_rows, out_height)
        band = base.pixels[base_rows[top:bottom]][:, base_cols]

        index = grid_rows[top:bottom, None] * grid.width + grid_cols[None, :]
        in_bounds = (
            (grid_rows[top:bottom, None] < grid.height)
            & (grid_cols[None, :] < grid.width)
            & (index < sample_count)
        )
        skipped += int(in_bounds.size - np.count_nonzero(in_bounds))

        write = in_bounds
        if mode == "water":
            # mask comes from the untouched base band, before any write
            write = write & water_mask(band)

        targets = index[write]
        if targets.size:
            colors = map_samples(grid.data[targets], value_range, policy)
            band[write, :3] = colors
            band[write, 3] = OPAQUE
            written += int(targets.size)

        out[top:bottom] = band

    if skipped:
        logger.warning(
            "heatmap.composite.out_of_bounds skipped=%s out=%sx%s grid=%sx%s",
            skipped,
            out_width,
            out_height,
            grid.width,
            grid.height,
        )

    return CompositeResult(
        buffer=PixelBuffer(width=out_width, height=out_height, pixels=out),
        written=written,
        skipped=skipped,
    )
