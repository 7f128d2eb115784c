"""Per-request scratch directories.

Each render gets its own ``heatmap-<uuid4>`` directory and removes it on
every exit path. Nothing outside that directory is ever deleted, so
concurrent requests never touch each other's files.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def request_workspace(root: Path | None = None) -> Iterator[Path]:
    base = Path(root) if root else Path(tempfile.gettempdir())
    base.mkdir(parents=True, exist_ok=True)
    path = base / f"heatmap-{uuid.uuid4().hex}"
    path.mkdir()
    logger.debug("heatmap.workspace.created path=%s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("heatmap.workspace.removed path=%s", path)


def store_chunks(chunks: Iterable[bytes], target: Path) -> Path:
    """Write an uploaded file's chunks to ``target``."""

    with target.open("wb") as fh:
        for chunk in chunks:
            fh.write(chunk)
    return target

