from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from mp_analytics.viz.common import save_figure

DEFAULT_Z_THRESHOLD = 2.0


def _numeric(values: pd.Series) -> np.ndarray:
    return pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)


def plot_monthly_reports(monthly_reports: pd.DataFrame, output_path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(12, 4))
    months = pd.to_datetime(monthly_reports["month"])
    ax.bar(months, monthly_reports["reports"], width=20, color="#cbd5e1", label="Reports")

    palette = ("#0369a1", "#b45309", "#15803d")
    average_columns = [column for column in monthly_reports.columns if column.startswith("ma_")]
    for color, column in zip(palette, average_columns):
        window = column.removeprefix("ma_").removesuffix("mo")
        ax.plot(
            months,
            _numeric(monthly_reports[column]),
            linewidth=1.5,
            color=color,
            label=f"{window}-month moving average",
        )

    ax.set_title("Missing-person reports per month")
    ax.set_xlabel("Month")
    ax.set_ylabel("Reports")
    ax.legend(loc="upper left")
    return save_figure(fig, output_path)


def plot_monthly_anomaly(
    anomaly: pd.DataFrame,
    output_path: Path,
    z_threshold: float = DEFAULT_Z_THRESHOLD,
) -> Path:
    z_column = next(column for column in anomaly.columns if column.startswith("zscore_"))
    mean_column = next(column for column in anomaly.columns if column.startswith("mean_"))
    months = pd.to_datetime(anomaly["month"])
    z_scores = _numeric(anomaly[z_column])

    fig, (ax_counts, ax_z) = plt.subplots(2, 1, figsize=(12, 6), sharex=True)
    ax_counts.plot(months, anomaly["reports"], linewidth=1.2, color="#0f172a", label="Reports")
    ax_counts.plot(
        months,
        _numeric(anomaly[mean_column]),
        linewidth=1.2,
        color="#0369a1",
        label="Trailing mean",
    )
    flagged = np.abs(np.nan_to_num(z_scores, nan=0.0)) >= z_threshold
    if flagged.any():
        ax_counts.scatter(
            months[flagged],
            anomaly["reports"][flagged],
            color="#dc2626",
            zorder=3,
            label=f"|z| >= {z_threshold:g}",
        )
    ax_counts.set_ylabel("Reports")
    ax_counts.legend(loc="upper left")

    ax_z.bar(months, np.nan_to_num(z_scores, nan=0.0), width=20, color="#64748b")
    for bound in (-z_threshold, z_threshold):
        ax_z.axhline(bound, color="#dc2626", linewidth=1.0, linestyle="--", alpha=0.7)
    ax_z.set_ylabel("z-score")
    ax_z.set_xlabel("Month")
    ax_counts.set_title("Monthly reports with trailing anomaly scores")
    return save_figure(fig, output_path)
