from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path
from typing import IO, Final

from heatmap.exceptions import (
    InvalidArchiveError,
    MalformedGridError,
    NoGridEntryError,
)

logger = logging.getLogger(__name__)

DEFAULT_GRID_SUFFIX: Final[str] = ".grid"

# Raised by zipfile while reading entries it cannot decode: unsupported
# compression methods, encrypted entries and corrupt deflate streams.
_UNREADABLE_ENTRY_ERRORS: Final = (
    zipfile.BadZipFile,
    NotImplementedError,
    RuntimeError,
    EOFError,
    zlib.error,
)


def find_grid_entry(
    archive: zipfile.ZipFile, suffix: str = DEFAULT_GRID_SUFFIX
) -> zipfile.ZipInfo:
    """Return the first file entry whose name ends with ``suffix``."""

    wanted = suffix.lower()
    for info in archive.infolist():
        if info.is_dir():
            continue
        if info.filename.lower().endswith(wanted):
            return info
    raise NoGridEntryError(f"No {suffix} file found in ZIP.")


def extract_grid_entry(
    source: str | Path | IO[bytes],
    suffix: str = DEFAULT_GRID_SUFFIX,
    *,
    expected_size: int | None = None,
) -> bytes:
    """Read the bytes of the grid entry held in a ZIP archive.

    With ``expected_size`` the entry's declared size is checked before
    anything is decompressed, so an oversized entry is rejected without
    being inflated. zipfile stops reading at the declared size.
    """

    try:
        with zipfile.ZipFile(source) as archive:
            info = find_grid_entry(archive, suffix)
            logger.info(
                "heatmap.archive.entry name=%s size=%s",
                info.filename,
                info.file_size,
            )
            if expected_size is not None and info.file_size != expected_size:
                raise MalformedGridError(
                    f"Grid entry {info.filename} holds {info.file_size} "
                    f"bytes, expected {expected_size}."
                )
            return archive.read(info)
    except _UNREADABLE_ENTRY_ERRORS as exc:
        logger.warning("heatmap.archive.unreadable error=%s", exc)
        raise InvalidArchiveError(
            "Uploaded file is not a readable ZIP archive."
        ) from exc
