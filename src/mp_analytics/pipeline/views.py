from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

import pandas as pd

from mp_analytics.config import AppConfig
from mp_analytics.features.aggregates import (
    build_duration_by_category,
    build_duration_histogram,
    build_kpi_summary,
    build_monthly_demographics,
    build_monthly_reports,
    build_monthly_reports_with_anomaly,
    build_status_tally,
    frame_to_rows,
)
from mp_analytics.io.schema import records_to_frame
from mp_analytics.preprocess.durations import add_duration_features
from mp_analytics.preprocess.fields import add_category_features
from mp_analytics.preprocess.time import add_time_features

LOGGER = logging.getLogger(__name__)

ViewBuilder = Callable[[pd.DataFrame, AppConfig], pd.DataFrame]


@dataclass(frozen=True)
class ViewResult:
    view: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


VIEW_BUILDERS: dict[str, ViewBuilder] = {
    "kpi": lambda df, _cfg: build_kpi_summary(df),
    "monthly_reports": lambda df, cfg: build_monthly_reports(
        df,
        short_window=cfg.windows.short_months,
        long_window=cfg.windows.long_months,
    ),
    "monthly_reports_with_anomaly": lambda df, cfg: build_monthly_reports_with_anomaly(
        df,
        window=cfg.windows.anomaly_months,
    ),
    "time_to_located_histogram": lambda df, _cfg: build_duration_histogram(df),
    "demographics_misstype": lambda df, _cfg: build_monthly_demographics(df, "misstype"),
    "demographics_sex": lambda df, _cfg: build_monthly_demographics(df, "sex"),
    "demographics_race": lambda df, _cfg: build_monthly_demographics(df, "race"),
    "time_to_located_by_race": lambda df, _cfg: build_duration_by_category(df, "race"),
    "time_to_located_by_sex": lambda df, _cfg: build_duration_by_category(df, "sex"),
    "time_to_located_by_misstype": lambda df, _cfg: build_duration_by_category(df, "misstype"),
    "ncic_acic_status": lambda df, _cfg: build_status_tally(df),
}


def available_views() -> list[str]:
    return list(VIEW_BUILDERS)


def resolve_view_names(names: Iterable[str] | None) -> list[str]:
    if names is None:
        return available_views()
    resolved: list[str] = []
    for name in names:
        normalized = str(name or "").strip()
        if normalized and normalized not in resolved:
            resolved.append(normalized)
    return resolved


def prepare_case_frame(records: pd.DataFrame | Iterable[Any], config: AppConfig) -> pd.DataFrame:
    """Normalize categories, parse report dates and bucket durations once per batch."""
    df = records_to_frame(records, columns=config.columns)
    df = add_category_features(df)
    df = add_time_features(df, config=config.time)
    df = add_duration_features(df)
    LOGGER.info(
        "Prepared %d records (%d with a parseable report date)",
        len(df),
        int(df["reported_at"].notna().sum()),
    )
    return df


def build_view_table(prepared: pd.DataFrame, name: str, config: AppConfig) -> pd.DataFrame:
    try:
        builder = VIEW_BUILDERS[name]
    except KeyError:
        raise KeyError(f"Unknown view: {name}") from None
    return builder(prepared, config)


def compute_view(
    records: pd.DataFrame | Iterable[Any],
    name: str,
    config: AppConfig | None = None,
) -> list[dict[str, Any]]:
    cfg = config or AppConfig()
    if name not in VIEW_BUILDERS:
        raise KeyError(f"Unknown view: {name}")
    prepared = prepare_case_frame(records, cfg)
    return frame_to_rows(build_view_table(prepared, name, cfg))


def compute_view_tables(
    prepared: pd.DataFrame,
    names: Sequence[str],
    config: AppConfig,
) -> tuple[dict[str, pd.DataFrame], dict[str, str]]:
    """Build each named view independently; one failure never blocks the rest."""
    tables: dict[str, pd.DataFrame] = {}
    errors: dict[str, str] = {}
    for name in names:
        try:
            tables[name] = build_view_table(prepared, name, config)
        except Exception as exc:
            LOGGER.exception("View %s failed", name)
            errors[name] = f"{type(exc).__name__}: {exc}"
    return tables, errors


def compute_views(
    records: pd.DataFrame | Iterable[Any],
    names: Iterable[str] | None = None,
    config: AppConfig | None = None,
) -> dict[str, ViewResult]:
    cfg = config or AppConfig()
    view_names = resolve_view_names(names)
    prepared = prepare_case_frame(records, cfg)
    tables, errors = compute_view_tables(prepared, view_names, cfg)

    results: dict[str, ViewResult] = {}
    for name in view_names:
        if name in errors:
            results[name] = ViewResult(view=name, error=errors[name])
            continue
        try:
            rows = frame_to_rows(tables[name])
        except Exception as exc:
            LOGGER.exception("View %s could not be serialized", name)
            results[name] = ViewResult(view=name, error=f"{type(exc).__name__}: {exc}")
            continue
        results[name] = ViewResult(view=name, rows=rows)
    return results
