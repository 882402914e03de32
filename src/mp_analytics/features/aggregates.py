from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

from mp_analytics.features.rolling import (
    moving_average,
    round_half_up,
    round_series,
    sample_std,
    z_score,
)
from mp_analytics.features.series import (
    REPORTS_COLUMN,
    build_monthly_category_counts,
    build_monthly_series,
)
from mp_analytics.preprocess.durations import BUCKET_ORDER, HISTOGRAM_BUCKETS
from mp_analytics.preprocess.fields import (
    AGE_CLASS_CATEGORY_COLUMN,
    RACE_CATEGORY_COLUMN,
    SEX_CATEGORY_COLUMN,
    AgeClass,
    RaceEthnicity,
    Sex,
)


@dataclass(frozen=True)
class CategoryDimension:
    name: str
    column: str
    categories: tuple[str, ...]
    monthly_labels: tuple[str, ...]


CATEGORY_DIMENSIONS: dict[str, CategoryDimension] = {
    "misstype": CategoryDimension(
        name="misstype",
        column=AGE_CLASS_CATEGORY_COLUMN,
        categories=tuple(member.value for member in AgeClass),
        monthly_labels=("adult", "juvenile", "unknown"),
    ),
    "sex": CategoryDimension(
        name="sex",
        column=SEX_CATEGORY_COLUMN,
        categories=tuple(member.value for member in Sex),
        monthly_labels=("male", "female", "unknown"),
    ),
    "race": CategoryDimension(
        name="race",
        column=RACE_CATEGORY_COLUMN,
        categories=tuple(member.value for member in RaceEthnicity),
        monthly_labels=tuple(member.value for member in RaceEthnicity),
    ),
}

# Label -> flag column, in display order.
STATUS_ROWS = (
    ("ACIC Cleared", "acic_cleared_flag"),
    ("ACIC Entered", "acic_entered_flag"),
    ("NCIC Cleared", "ncic_cleared_flag"),
    ("NCIC Entered", "ncic_entered_flag"),
)


def _dimension(name: str) -> CategoryDimension:
    try:
        return CATEGORY_DIMENSIONS[name]
    except KeyError:
        raise ValueError(f"Unknown category dimension: {name}") from None


def build_kpi_summary(df: pd.DataFrame) -> pd.DataFrame:
    total_reports = int(len(df))
    elapsed = pd.to_numeric(df["days_elapsed"], errors="coerce").dropna().to_numpy(dtype=float)
    # numpy's default "linear" method matches PERCENTILE_CONT.
    median_days = float(np.percentile(elapsed, 50)) if elapsed.size else None
    still_missing = int(df["is_still_missing"].sum())
    pct_still_missing = (
        round_half_up(100.0 * still_missing / total_reports) if total_reports else 0.0
    )
    return pd.DataFrame(
        [
            {
                "total_reports": total_reports,
                "median_days_missing": median_days,
                "pct_still_missing": pct_still_missing,
            }
        ],
        columns=["total_reports", "median_days_missing", "pct_still_missing"],
    )


def build_monthly_reports(
    df: pd.DataFrame,
    short_window: int = 6,
    long_window: int = 12,
) -> pd.DataFrame:
    series = build_monthly_series(df)
    reports = series[REPORTS_COLUMN].to_numpy(dtype=float)
    series[f"ma_{short_window}mo"] = round_series(moving_average(reports, short_window))
    series[f"ma_{long_window}mo"] = round_series(moving_average(reports, long_window))
    return series


def build_monthly_reports_with_anomaly(df: pd.DataFrame, window: int = 12) -> pd.DataFrame:
    series = build_monthly_series(df)
    reports = series[REPORTS_COLUMN].to_numpy(dtype=float)
    series[f"mean_{window}mo"] = round_series(moving_average(reports, window))
    series[f"sd_{window}mo"] = round_series(sample_std(reports, window))
    series[f"zscore_{window}mo"] = round_series(z_score(reports, window))
    return series


def build_duration_histogram(df: pd.DataFrame) -> pd.DataFrame:
    """Counts per elapsed-time bucket with each bucket's share of all records.

    Unknown/Invalid records stay in the denominator but are not listed, and
    buckets without records are omitted.
    """
    columns = ["bucket", "count", "pct_of_total"]
    counts = df["duration_bucket"].value_counts()
    total = int(counts.sum())
    rows = []
    for bucket in HISTOGRAM_BUCKETS:
        count = int(counts.get(bucket, 0))
        if count == 0:
            continue
        rows.append(
            {
                "bucket": bucket,
                "count": count,
                "pct_of_total": round_half_up(100.0 * count / total),
            }
        )
    return pd.DataFrame(rows, columns=columns)


def build_monthly_demographics(df: pd.DataFrame, dimension: str) -> pd.DataFrame:
    category = _dimension(dimension)
    return build_monthly_category_counts(
        df,
        category_column=category.column,
        categories=category.categories,
        labels=category.monthly_labels,
    )


def build_duration_by_category(df: pd.DataFrame, dimension: str) -> pd.DataFrame:
    """Bucket x category counts, bucket-major; empty cells are not emitted."""
    category = _dimension(dimension)
    columns = ["bucket", category.column, "count"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    grouped = (
        df.groupby(["duration_bucket", category.column], dropna=True)
        .size()
        .rename("count")
        .reset_index()
        .rename(columns={"duration_bucket": "bucket"})
    )
    grouped = grouped.loc[grouped["count"] > 0].copy()
    bucket_rank = {bucket: rank for rank, bucket in enumerate(BUCKET_ORDER)}
    grouped["bucket_rank"] = grouped["bucket"].map(bucket_rank)
    grouped = grouped.sort_values(["bucket_rank", category.column], kind="mergesort")
    grouped["count"] = grouped["count"].astype("int64")
    return grouped[columns].reset_index(drop=True)


def build_status_tally(df: pd.DataFrame) -> pd.DataFrame:
    rows = [
        {
            "category": label,
            "yes_count": int((df[column] == "Yes").sum()),
            "no_count": int((df[column] == "No").sum()),
        }
        for label, column in sorted(STATUS_ROWS)
    ]
    return pd.DataFrame(rows, columns=["category", "yes_count", "no_count"])


def _to_primitive(value: Any) -> Any:
    if value is None:
        return None
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return float(value)
    return str(value)


def frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a view table to JSON-ready rows of primitives."""
    return [
        {str(key): _to_primitive(value) for key, value in record.items()}
        for record in df.to_dict(orient="records")
    ]
