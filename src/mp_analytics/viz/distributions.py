from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from mp_analytics.viz.common import save_figure


def plot_duration_histogram(histogram: pd.DataFrame, output_path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(8, 4))
    labels = histogram["bucket"].astype(str).tolist()
    counts = histogram["count"].astype(int).tolist()
    bars = ax.bar(labels, counts, color="#0369a1")
    for bar, pct in zip(bars, histogram["pct_of_total"].tolist()):
        if pct is None or pd.isna(pct):
            continue
        ax.annotate(
            f"{float(pct):.2f}%",
            (bar.get_x() + bar.get_width() / 2.0, bar.get_height()),
            ha="center",
            va="bottom",
            fontsize=8,
        )
    ax.set_title("Time from last seen to located")
    ax.set_xlabel("Elapsed time")
    ax.set_ylabel("Cases")
    return save_figure(fig, output_path)
