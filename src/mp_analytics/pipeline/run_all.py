from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from mp_analytics import __version__
from mp_analytics.config import AppConfig
from mp_analytics.features.aggregates import frame_to_rows
from mp_analytics.io.read import load_records
from mp_analytics.io.write import write_summary, write_view
from mp_analytics.paths import build_output_paths
from mp_analytics.pipeline.views import (
    compute_view_tables,
    prepare_case_frame,
    resolve_view_names,
)
from mp_analytics.viz.distributions import plot_duration_histogram
from mp_analytics.viz.time_series import plot_monthly_anomaly, plot_monthly_reports

LOGGER = logging.getLogger(__name__)

FIGURE_RENDERERS = {
    "monthly_reports": plot_monthly_reports,
    "monthly_reports_with_anomaly": plot_monthly_anomaly,
    "time_to_located_histogram": plot_duration_histogram,
}


def _render_view_figures(
    tables: dict[str, pd.DataFrame],
    figures_dir: Path,
    config: AppConfig,
) -> list[str]:
    suffix = str(config.outputs.figures_format or "").strip().lstrip(".") or "png"
    rendered: list[str] = []
    for view_name, renderer in FIGURE_RENDERERS.items():
        table = tables.get(view_name)
        if table is None or table.empty:
            continue
        try:
            renderer(table, figures_dir / f"{view_name}.{suffix}")
        except Exception:  # pragma: no cover
            LOGGER.exception("Failed rendering figure for view %s", view_name)
            continue
        rendered.append(view_name)
    return rendered


def run_views(
    records: pd.DataFrame | Iterable[Any],
    out_dir: Path,
    config: AppConfig,
    views: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Compute views over an in-memory record snapshot and write them to ``out_dir``."""
    paths = build_output_paths(out_dir)
    view_names = resolve_view_names(views)
    prepared = prepare_case_frame(records, config)
    tables, errors = compute_view_tables(prepared, view_names, config)

    written: dict[str, str] = {}
    fmt = config.outputs.tables_format
    for name, table in tables.items():
        output_path = write_view(frame_to_rows(table), paths.views / f"{name}.{fmt}", fmt=fmt)
        written[name] = str(output_path)

    figures: list[str] = []
    if config.outputs.render_figures:
        figures = _render_view_figures(tables, paths.figures, config)

    summary = {
        "version": __version__,
        "records_total": int(len(prepared)),
        "records_with_report_date": int(prepared["reported_at"].notna().sum()),
        "views_written": written,
        "views_failed": errors,
        "figures": figures,
    }
    write_summary(summary, paths.summary / "run.json")
    if errors:
        LOGGER.warning("%d of %d views failed: %s", len(errors), len(view_names), sorted(errors))
    return summary


def run_all(
    csv_path: Path | None,
    out_dir: Path,
    config: AppConfig,
    *,
    views: Iterable[str] | None = None,
) -> dict[str, Any]:
    records = load_records(csv_path=csv_path, config=config)
    return run_views(records, out_dir=out_dir, config=config, views=views)
