from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

FIGURE_DPI = 120


def save_figure(fig: Figure, path: Path, dpi: int = FIGURE_DPI) -> Path:
    """Write ``fig`` to ``path`` (format from the suffix) and release it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.tight_layout()
        fig.savefig(path, dpi=dpi)
    finally:
        plt.close(fig)
    return path
