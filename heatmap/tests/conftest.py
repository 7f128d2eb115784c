from __future__ import annotations

from pathlib import Path

import pytest
from pytest_django.fixtures import SettingsWrapper


@pytest.fixture
def small_grid_settings(
    settings: SettingsWrapper, tmp_path: Path
) -> SettingsWrapper:
    """4x2 little-endian int16 grid, threshold policy, private work dir."""

    settings.HEATMAP_GRID_WIDTH = 4
    settings.HEATMAP_GRID_HEIGHT = 2
    settings.HEATMAP_GRID_DTYPE = "int16"
    settings.HEATMAP_GRID_BYTE_ORDER = "little"
    settings.HEATMAP_GRID_HEADER_BYTES = 0
    settings.HEATMAP_GRID_SENTINEL = "-999"
    settings.HEATMAP_COLOR_POLICY = "threshold"
    settings.HEATMAP_COMPOSITE_MODE = "full"
    settings.HEATMAP_OUTPUT_WIDTH = None
    settings.HEATMAP_OUTPUT_HEIGHT = None
    settings.HEATMAP_MAX_OUTPUT_PIXELS = 10_000
    settings.HEATMAP_WORK_DIR = str(tmp_path / "work")
    return settings
