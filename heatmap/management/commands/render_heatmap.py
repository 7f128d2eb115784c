from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from django.core.management.base import (
    BaseCommand,
    CommandError,
    CommandParser,
)

from heatmap.conf import load_heatmap_settings
from heatmap.exceptions import HeatmapError
from heatmap.render.colormap import POLICY_KINDS
from heatmap.render.compositor import COMPOSITE_MODES
from heatmap.services import render_heatmap, resolve_options


class Command(BaseCommand):
    help = "Render a heatmap PNG from a base map image and a grid ZIP archive."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--map", required=True, type=Path)
        parser.add_argument("--zip", required=True, type=Path)
        parser.add_argument("--out", required=True, type=Path)
        parser.add_argument("--width", type=int)
        parser.add_argument("--height", type=int)
        parser.add_argument("--mode", choices=COMPOSITE_MODES)
        parser.add_argument("--policy", choices=POLICY_KINDS)

    def handle(self, *args: object, **options: Any) -> None:
        for key in ("map", "zip"):
            if not options[key].is_file():
                raise CommandError(f"--{key} file not found: {options[key]}")

        try:
            config = load_heatmap_settings()
            render_options = resolve_options(
                config,
                width=options.get("width"),
                height=options.get("height"),
                mode=options.get("mode"),
                policy=options.get("policy"),
            )
            result = render_heatmap(
                options["map"],
                options["zip"],
                options=render_options,
                config=config,
            )
        except (HeatmapError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        out_path: Path = options["out"]
        with result.stream, out_path.open("wb") as fh:
            shutil.copyfileobj(result.stream, fh)

        self.stdout.write(f"OUTPUT={out_path}")
        self.stdout.write(f"SIZE={result.width}x{result.height}")
        self.stdout.write(
            f"RANGE={result.value_range.min}..{result.value_range.max}"
        )
        self.stdout.write(f"SKIPPED={result.skipped}")
