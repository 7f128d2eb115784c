from __future__ import annotations

from prometheus_client import Counter, Histogram

heatmap_renders_total = Counter(
    "heatmap_renders_total",
    "Total heatmap render requests",
    labelnames=["status", "mode", "policy"],
)

heatmap_errors_total = Counter(
    "heatmap_errors_total",
    "Heatmap render failures by error code",
    labelnames=["code"],
)

heatmap_stage_seconds = Histogram(
    "heatmap_stage_seconds",
    "Duration of each heatmap pipeline stage",
    labelnames=["stage"],
    buckets=(0.05, 0.1, 0.3, 0.5, 1, 2, 5, 10, 30, 60, 120),
)

heatmap_pixels_skipped_total = Counter(
    "heatmap_pixels_skipped_total",
    "Output pixels left unchanged because their sample was out of bounds",
)
