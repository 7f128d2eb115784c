"""Sample value to RGB color mapping.

Three policies are supported and selected by configuration:

* ``threshold``: fixed half-open bands (cold / warm / hot), range ignored.
* ``linear``: two-color blue to red ramp normalised by the grid range.
* ``gradient``: blue to green to red, green at the range midpoint.

No-data samples always map to the policy's ``no_data_color``. The scalar
``map_sample`` is computed through ``map_samples`` so both agree bit for bit.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Final, Literal

import numpy as np

from heatmap.exceptions import DegenerateRangeError
from heatmap.grid.decoder import (
    DEFAULT_SENTINEL,
    TemperatureRange,
    no_data_mask,
)

PolicyKind = Literal["threshold", "linear", "gradient"]
RGB = tuple[int, int, int]

POLICY_KINDS: Final[tuple[str, ...]] = ("threshold", "linear", "gradient")

NO_DATA_COLOR: Final[RGB] = (0, 0, 0)
COLD_COLOR: Final[RGB] = (0, 0, 255)
WARM_COLOR: Final[RGB] = (0, 255, 0)
HOT_COLOR: Final[RGB] = (255, 0, 0)
DEFAULT_BREAKPOINTS: Final[tuple[float, ...]] = (32, 60)


@dataclass(frozen=True)
class ColorPolicy:
    kind: PolicyKind = "gradient"
    breakpoints: tuple[float, ...] = DEFAULT_BREAKPOINTS
    band_colors: tuple[RGB, ...] = (COLD_COLOR, WARM_COLOR, HOT_COLOR)
    no_data_color: RGB = NO_DATA_COLOR
    sentinel: float = DEFAULT_SENTINEL
    valid_min: float | None = None
    valid_max: float | None = None
    _palette: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.kind not in POLICY_KINDS:
            raise ValueError(f"Unknown color policy: {self.kind}")
        if len(self.band_colors) != len(self.breakpoints) + 1:
            raise ValueError(
                "Threshold policy needs one more band color than breakpoints."
            )
        if list(self.breakpoints) != sorted(self.breakpoints):
            raise ValueError("Threshold breakpoints must be ascending.")
        object.__setattr__(
            self, "_palette", np.array(self.band_colors, dtype=np.uint8)
        )


def _ratio_colors(ratio: np.ndarray, kind: PolicyKind) -> np.ndarray:
    out = np.zeros((ratio.size, 3), dtype=np.uint8)
    if kind == "linear":
        out[:, 0] = (255 * ratio).astype(np.uint8)
        out[:, 2] = (255 * (1.0 - ratio)).astype(np.uint8)
        return out

    low = ratio <= 0.5
    high = ~low
    out[low, 1] = (255 * (2.0 * ratio[low])).astype(np.uint8)
    out[low, 2] = (255 * (1.0 - 2.0 * ratio[low])).astype(np.uint8)
    out[high, 0] = (255 * (2.0 * ratio[high] - 1.0)).astype(np.uint8)
    out[high, 1] = (255 * (2.0 - 2.0 * ratio[high])).astype(np.uint8)
    return out


def midpoint_color(kind: PolicyKind) -> RGB:
    """Color used for every sample when the range is degenerate."""

    r, g, b = _ratio_colors(np.array([0.5]), kind)[0]
    return int(r), int(g), int(b)


def _threshold_colors(values: np.ndarray, policy: ColorPolicy) -> np.ndarray:
    # side="right" puts a value equal to a breakpoint in the upper band
    bands = np.searchsorted(
        np.asarray(policy.breakpoints, dtype=np.float64), values, side="right"
    )
    return policy._palette[bands]


def map_samples(
    values: np.ndarray, value_range: TemperatureRange, policy: ColorPolicy
) -> np.ndarray:
    """Map a 1-D array of samples to an ``(N, 3)`` uint8 color array."""

    values = np.asarray(values).ravel()
    missing = no_data_mask(
        values,
        sentinel=policy.sentinel,
        valid_min=policy.valid_min,
        valid_max=policy.valid_max,
    )

    if policy.kind == "threshold":
        colors = _threshold_colors(values, policy)
    else:
        try:
            span = value_range.span()
        except DegenerateRangeError:
            colors = np.empty((values.size, 3), dtype=np.uint8)
            colors[:] = midpoint_color(policy.kind)
        else:
            with np.errstate(invalid="ignore"):
                ratio = (values.astype(np.float64) - value_range.min) / span
            ratio = np.clip(np.nan_to_num(ratio, nan=0.0), 0.0, 1.0)
            colors = _ratio_colors(ratio, policy.kind)

    if missing.any():
        colors[missing] = policy.no_data_color
    return colors


def map_sample(
    sample: float, value_range: TemperatureRange, policy: ColorPolicy
) -> RGB:
    r, g, b = map_samples(np.array([sample]), value_range, policy)[0]
    return int(r), int(g), int(b)


def build_policy(
    kind: str,
    *,
    breakpoints: Sequence[float] = DEFAULT_BREAKPOINTS,
    band_colors: Sequence[Sequence[int]] | None = None,
    no_data_color: Sequence[int] = NO_DATA_COLOR,
    sentinel: float = DEFAULT_SENTINEL,
    valid_min: float | None = None,
    valid_max: float | None = None,
) -> ColorPolicy:
    colors = band_colors or (COLD_COLOR, WARM_COLOR, HOT_COLOR)
    return ColorPolicy(
        kind=kind.lower(),  # type: ignore[arg-type]
        breakpoints=tuple(float(b) for b in breakpoints),
        band_colors=tuple(_as_rgb(c) for c in colors),
        no_data_color=_as_rgb(no_data_color),
        sentinel=sentinel,
        valid_min=valid_min,
        valid_max=valid_max,
    )


def _as_rgb(color: Sequence[int]) -> RGB:
    if len(color) != 3 or any(not 0 <= int(c) <= 255 for c in color):
        raise ValueError(f"Invalid RGB color: {color!r}")
    return int(color[0]), int(color[1]), int(color[2])
