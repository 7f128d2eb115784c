from __future__ import annotations

import logging
import tempfile
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol

from .conf import HeatmapSettings, load_heatmap_settings, load_policy
from .exceptions import HeatmapError, MissingInputError
from .grid.archive import extract_grid_entry
from .grid.decoder import TemperatureRange, compute_range, decode_grid
from .metrics import (
    heatmap_errors_total,
    heatmap_pixels_skipped_total,
    heatmap_renders_total,
    heatmap_stage_seconds,
)
from .render.colormap import ColorPolicy
from .render.compositor import CompositeMode, composite
from .render.imaging import load_base_image
from .render.raster import write_png
from .workspace import request_workspace, store_chunks

logger = logging.getLogger(__name__)

Source = str | Path | IO[bytes]


class UploadedFileLike(Protocol):
    name: str

    def chunks(self, chunk_size: int | None = None) -> Iterable[bytes]: ...


@dataclass(frozen=True)
class RenderOptions:
    width: int
    height: int
    mode: CompositeMode
    policy: ColorPolicy


@dataclass
class RenderResult:
    """Rendered PNG held in an anonymous temporary file.

    The caller owns ``stream`` and must close it; closing removes the file.
    """

    stream: IO[bytes]
    width: int
    height: int
    value_range: TemperatureRange
    written: int
    skipped: int


def resolve_options(
    config: HeatmapSettings,
    *,
    width: int | None = None,
    height: int | None = None,
    mode: CompositeMode | None = None,
    policy: str | None = None,
) -> RenderOptions:
    out_width = width or config.output_width
    out_height = height or config.output_height
    if out_width * out_height > config.max_output_pixels:
        raise ValueError(
            f"Output size {out_width}x{out_height} exceeds "
            f"{config.max_output_pixels} pixels."
        )
    return RenderOptions(
        width=out_width,
        height=out_height,
        mode=mode or config.mode,
        policy=load_policy(config.grid, policy) if policy else config.policy,
    )


@contextmanager
def _stage(name: str) -> Iterator[None]:
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start_time
        heatmap_stage_seconds.labels(stage=name).observe(duration)
        logger.debug("heatmap.stage name=%s seconds=%.3f", name, duration)


def render_heatmap(
    map_source: Source,
    zip_source: Source,
    *,
    options: RenderOptions | None = None,
    config: HeatmapSettings | None = None,
) -> RenderResult:
    """Run the full pipeline: extract, decode, composite, encode."""

    config = config or load_heatmap_settings()
    options = options or resolve_options(config)
    labels = {"mode": options.mode, "policy": options.policy.kind}

    try:
        with _stage("extract"):
            raw = extract_grid_entry(
                zip_source,
                config.grid_suffix,
                expected_size=config.grid.byte_size,
            )
        with _stage("decode"):
            grid = decode_grid(raw, config.grid)
            value_range = compute_range(
                grid, exclude_no_data=config.range_excludes_no_data
            )
        with _stage("load_base"):
            base = load_base_image(map_source)
        with _stage("composite"):
            result = composite(
                grid,
                value_range,
                base,
                out_width=options.width,
                out_height=options.height,
                policy=options.policy,
                mode=options.mode,
            )
        del base, grid, raw

        output = tempfile.TemporaryFile()
        try:
            with _stage("encode"):
                write_png(
                    result.buffer,
                    output,
                    compress_level=config.compress_level,
                )
        except BaseException:
            output.close()
            raise
        output.seek(0)
    except HeatmapError as exc:
        heatmap_errors_total.labels(code=exc.code).inc()
        heatmap_renders_total.labels(status="error", **labels).inc()
        logger.warning(
            "heatmap.render.failed code=%s message=%s", exc.code, exc.message
        )
        raise

    if result.skipped:
        heatmap_pixels_skipped_total.inc(result.skipped)
    heatmap_renders_total.labels(status="ok", **labels).inc()
    logger.info(
        "heatmap.render.done width=%s height=%s mode=%s policy=%s "
        "range_min=%s range_max=%s written=%s skipped=%s",
        options.width,
        options.height,
        options.mode,
        options.policy.kind,
        value_range.min,
        value_range.max,
        result.written,
        result.skipped,
    )
    return RenderResult(
        stream=output,
        width=options.width,
        height=options.height,
        value_range=value_range,
        written=result.written,
        skipped=result.skipped,
    )


def render_uploads(
    map_file: UploadedFileLike | None,
    zip_file: UploadedFileLike | None,
    *,
    options: RenderOptions | None = None,
    config: HeatmapSettings | None = None,
) -> RenderResult:
    """Stage both uploads in a private workspace and render them.

    The workspace, including the staged uploads, is removed before this
    returns or raises; the PNG stream in the result lives outside it.
    """

    if map_file is None or zip_file is None:
        raise MissingInputError("Files are missing.")

    config = config or load_heatmap_settings()
    with request_workspace(config.work_dir) as workspace:
        map_path = store_chunks(map_file.chunks(), workspace / "map")
        zip_path = store_chunks(zip_file.chunks(), workspace / "grid.zip")
        return render_heatmap(
            map_path, zip_path, options=options, config=config
        )
