from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

import numpy as np

from heatmap.exceptions import DegenerateRangeError, MalformedGridError

SampleDType = Literal["int8", "uint8", "int16", "uint16", "float32"]
ByteOrder = Literal["little", "big"]

SUPPORTED_DTYPES: Final[tuple[str, ...]] = (
    "int8",
    "uint8",
    "int16",
    "uint16",
    "float32",
)
DEFAULT_SENTINEL: Final[int] = -999


@dataclass(frozen=True)
class GridSpec:
    """Expected layout of a packed sample grid."""

    width: int
    height: int
    dtype: SampleDType = "int16"
    byte_order: ByteOrder = "little"
    header_bytes: int = 0
    sentinel: float = DEFAULT_SENTINEL
    valid_min: float | None = None
    valid_max: float | None = None

    @property
    def numpy_dtype(self) -> np.dtype:
        prefix = "<" if self.byte_order == "little" else ">"
        return np.dtype(self.dtype).newbyteorder(prefix)

    @property
    def stride(self) -> int:
        return self.numpy_dtype.itemsize

    @property
    def sample_count(self) -> int:
        return self.width * self.height

    @property
    def byte_size(self) -> int:
        """Exact length of a well-formed grid buffer, header included."""

        return self.header_bytes + self.sample_count * self.stride


@dataclass(frozen=True)
class TemperatureRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(
                f"Range min {self.min} is greater than max {self.max}."
            )

    @property
    def is_degenerate(self) -> bool:
        return self.min == self.max

    def span(self) -> float:
        if self.is_degenerate:
            raise DegenerateRangeError(
                f"Temperature range collapses to {self.min}."
            )
        return self.max - self.min


@dataclass(frozen=True)
class SampleGrid:
    """Row-major temperature samples decoded from a grid buffer."""

    width: int
    height: int
    stride: int
    header_bytes: int
    data: np.ndarray
    sentinel: float = DEFAULT_SENTINEL
    valid_min: float | None = None
    valid_max: float | None = None

    def no_data_mask(self, values: np.ndarray | None = None) -> np.ndarray:
        """Return True where a sample carries no usable temperature."""

        samples = self.data if values is None else values
        return no_data_mask(
            samples,
            sentinel=self.sentinel,
            valid_min=self.valid_min,
            valid_max=self.valid_max,
        )


def no_data_mask(
    values: np.ndarray,
    *,
    sentinel: float,
    valid_min: float | None = None,
    valid_max: float | None = None,
) -> np.ndarray:
    if _representable(sentinel, values.dtype):
        mask = values == sentinel
    else:
        mask = np.zeros(values.shape, dtype=bool)
    if values.dtype.kind == "f":
        mask |= ~np.isfinite(values)
    if valid_min is not None:
        mask |= values < valid_min
    if valid_max is not None:
        mask |= values > valid_max
    return mask


def _representable(value: float, dtype: np.dtype) -> bool:
    if dtype.kind == "f":
        return True
    info = np.iinfo(dtype)
    return float(value).is_integer() and info.min <= value <= info.max


def decode_grid(
    raw: bytes | bytearray | memoryview, spec: GridSpec
) -> SampleGrid:
    """Interpret ``raw`` as a packed grid laid out according to ``spec``.

    The header is skipped, the remaining payload must hold exactly
    ``spec.width * spec.height`` samples of ``spec.stride`` bytes each.
    The returned array is a read-only view over ``raw``.
    """

    view = memoryview(raw)
    if len(view) < spec.header_bytes:
        raise MalformedGridError(
            f"Grid buffer holds {len(view)} bytes, shorter than the "
            f"{spec.header_bytes}-byte header."
        )

    payload = view[spec.header_bytes :]
    if len(payload) % spec.stride:
        raise MalformedGridError(
            f"Grid payload of {len(payload)} bytes is not a multiple of "
            f"the {spec.stride}-byte sample stride."
        )

    count = len(payload) // spec.stride
    if count != spec.sample_count:
        raise MalformedGridError(
            f"Grid holds {count} samples, expected "
            f"{spec.width}x{spec.height}={spec.sample_count}."
        )

    data = np.frombuffer(payload, dtype=spec.numpy_dtype)
    return SampleGrid(
        width=spec.width,
        height=spec.height,
        stride=spec.stride,
        header_bytes=spec.header_bytes,
        data=data,
        sentinel=spec.sentinel,
        valid_min=spec.valid_min,
        valid_max=spec.valid_max,
    )


def compute_range(
    grid: SampleGrid, *, exclude_no_data: bool = True
) -> TemperatureRange:
    """Compute the min/max of the grid samples.

    With ``exclude_no_data`` the sentinel, non-finite and out-of-bounds
    samples are left out. A grid without any usable sample collapses to
    ``{sentinel, sentinel}``.
    """

    values = grid.data
    if exclude_no_data:
        values = values[~grid.no_data_mask()]
    elif values.dtype.kind == "f":
        values = values[np.isfinite(values)]

    if values.size == 0:
        return TemperatureRange(
            min=float(grid.sentinel), max=float(grid.sentinel)
        )
    return TemperatureRange(min=float(values.min()), max=float(values.max()))
