"""Error taxonomy for heatmap rendering.

Every fatal error carries an HTTP status and a short machine-readable code so
views can turn it into the standard error envelope without inspecting the
exception type.
"""

from __future__ import annotations


class HeatmapError(Exception):
    """Base class for errors that abort a single render request."""

    status_code = 500
    default_code = "heatmap_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class MissingInputError(HeatmapError):
    """One or both required uploads are absent."""

    status_code = 400
    default_code = "missing_input"


class NoGridEntryError(HeatmapError):
    """The archive holds no entry with the expected suffix."""

    status_code = 400
    default_code = "no_grid_entry"


class InvalidArchiveError(HeatmapError):
    status_code = 400
    default_code = "invalid_archive"


class InvalidImageError(HeatmapError):
    status_code = 400
    default_code = "invalid_image"


class MalformedGridError(HeatmapError):
    """Grid buffer size is inconsistent with the expected layout."""

    status_code = 422
    default_code = "malformed_grid"


class EncodeError(HeatmapError):
    """Serialising the output raster failed."""

    status_code = 500
    default_code = "encode_failed"


class HeatmapConfigError(HeatmapError):
    """Raised when HEATMAP_* settings are missing or invalid."""

    status_code = 500
    default_code = "bad_config"


class DegenerateRangeError(ArithmeticError):
    """Temperature range has min == max; recovered inside the color mapper."""


ERROR_CODES: tuple[str, ...] = (
    *(
        cls.default_code
        for cls in (
            MissingInputError,
            NoGridEntryError,
            InvalidArchiveError,
            InvalidImageError,
            MalformedGridError,
            EncodeError,
            HeatmapConfigError,
        )
    ),
    "invalid_size",
)
