"""Heatmap configuration loader.

Reads the HEATMAP_* Django settings and validates them into a frozen
``HeatmapSettings``. Grid dimensions and header length are fixed per
deployment; they are never negotiated per request.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, cast

from django.conf import settings

from heatmap.exceptions import HeatmapConfigError
from heatmap.grid.archive import DEFAULT_GRID_SUFFIX
from heatmap.grid.decoder import (
    DEFAULT_SENTINEL,
    SUPPORTED_DTYPES,
    ByteOrder,
    GridSpec,
    SampleDType,
)
from heatmap.render.colormap import (
    DEFAULT_BREAKPOINTS,
    NO_DATA_COLOR,
    POLICY_KINDS,
    ColorPolicy,
    build_policy,
)
from heatmap.render.compositor import COMPOSITE_MODES, CompositeMode
from heatmap.render.raster import DEFAULT_COMPRESS_LEVEL

DEFAULT_GRID_WIDTH: Final[int] = 36000
DEFAULT_GRID_HEIGHT: Final[int] = 17999
DEFAULT_MAX_OUTPUT_PIXELS: Final[int] = (
    DEFAULT_GRID_WIDTH * DEFAULT_GRID_HEIGHT
)


@dataclass(frozen=True)
class HeatmapSettings:
    grid: GridSpec
    policy: ColorPolicy
    grid_suffix: str
    mode: CompositeMode
    output_width: int
    output_height: int
    max_output_pixels: int
    range_excludes_no_data: bool
    compress_level: int
    work_dir: Path | None


def _setting(name: str, default: Any) -> Any:
    return getattr(settings, name, default)


def _int_setting(
    name: str, default: int | None, *, minimum: int
) -> int | None:
    raw = _setting(name, default)
    if raw == "":
        raw = default
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise HeatmapConfigError(
            f"{name} must be an integer.", code="bad_config"
        ) from exc
    if value < minimum:
        raise HeatmapConfigError(
            f"{name} must be at least {minimum}.", code="bad_config"
        )
    return value


def _positive_int(name: str, default: int | None) -> int | None:
    return _int_setting(name, default, minimum=1)


def _optional_float(name: str) -> float | None:
    raw = _setting(name, None)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise HeatmapConfigError(
            f"{name} must be a number.", code="bad_config"
        ) from exc


def _choice(name: str, default: str, allowed: Sequence[str]) -> str:
    value = str(_setting(name, default)).strip().lower()
    if value not in allowed:
        raise HeatmapConfigError(
            f"{name} must be one of {', '.join(allowed)}.",
            code="bad_config",
        )
    return value


def load_grid_spec() -> GridSpec:
    width = cast(int, _positive_int("HEATMAP_GRID_WIDTH", DEFAULT_GRID_WIDTH))
    height = cast(
        int, _positive_int("HEATMAP_GRID_HEIGHT", DEFAULT_GRID_HEIGHT)
    )
    header = _int_setting("HEATMAP_GRID_HEADER_BYTES", 0, minimum=0) or 0
    sentinel = _optional_float("HEATMAP_GRID_SENTINEL")
    return GridSpec(
        width=width,
        height=height,
        dtype=cast(
            SampleDType,
            _choice("HEATMAP_GRID_DTYPE", "int16", SUPPORTED_DTYPES),
        ),
        byte_order=cast(
            ByteOrder,
            _choice("HEATMAP_GRID_BYTE_ORDER", "little", ("little", "big")),
        ),
        header_bytes=header,
        sentinel=DEFAULT_SENTINEL if sentinel is None else sentinel,
        valid_min=_optional_float("HEATMAP_GRID_VALID_MIN"),
        valid_max=_optional_float("HEATMAP_GRID_VALID_MAX"),
    )


def load_policy(grid: GridSpec, kind: str | None = None) -> ColorPolicy:
    name = kind or _choice("HEATMAP_COLOR_POLICY", "threshold", POLICY_KINDS)
    try:
        return build_policy(
            name,
            breakpoints=_setting(
                "HEATMAP_THRESHOLD_BREAKPOINTS", DEFAULT_BREAKPOINTS
            ),
            band_colors=_setting("HEATMAP_THRESHOLD_COLORS", None),
            no_data_color=_setting("HEATMAP_NO_DATA_COLOR", NO_DATA_COLOR),
            sentinel=grid.sentinel,
            valid_min=grid.valid_min,
            valid_max=grid.valid_max,
        )
    except (TypeError, ValueError) as exc:
        raise HeatmapConfigError(
            f"Invalid color policy configuration: {exc}", code="bad_config"
        ) from exc


def load_heatmap_settings() -> HeatmapSettings:
    """Return validated heatmap settings from Django settings."""

    grid = load_grid_spec()
    work_dir = _setting("HEATMAP_WORK_DIR", None)
    compress_level = _int_setting(
        "HEATMAP_PNG_COMPRESS_LEVEL", DEFAULT_COMPRESS_LEVEL, minimum=0
    )
    if compress_level is None or compress_level > 9:
        raise HeatmapConfigError(
            "HEATMAP_PNG_COMPRESS_LEVEL must be between 0 and 9.",
            code="bad_config",
        )
    return HeatmapSettings(
        grid=grid,
        policy=load_policy(grid),
        grid_suffix=str(_setting("HEATMAP_GRID_SUFFIX", DEFAULT_GRID_SUFFIX)),
        mode=cast(
            CompositeMode,
            _choice("HEATMAP_COMPOSITE_MODE", "full", COMPOSITE_MODES),
        ),
        output_width=_positive_int("HEATMAP_OUTPUT_WIDTH", None) or grid.width,
        output_height=_positive_int("HEATMAP_OUTPUT_HEIGHT", None)
        or grid.height,
        max_output_pixels=cast(
            int,
            _positive_int(
                "HEATMAP_MAX_OUTPUT_PIXELS", DEFAULT_MAX_OUTPUT_PIXELS
            ),
        ),
        range_excludes_no_data=bool(
            _setting("HEATMAP_RANGE_EXCLUDES_NO_DATA", True)
        ),
        compress_level=compress_level,
        work_dir=Path(work_dir) if work_dir else None,
    )
