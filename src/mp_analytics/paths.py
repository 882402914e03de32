from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class OutputPaths:
    root: Path
    views: Path
    figures: Path
    summary: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    paths = OutputPaths(
        root=out_dir,
        views=out_dir / "views",
        figures=out_dir / "figures",
        summary=out_dir / "summary",
    )
    for path in (paths.root, paths.views, paths.figures, paths.summary):
        path.mkdir(parents=True, exist_ok=True)
    return paths

