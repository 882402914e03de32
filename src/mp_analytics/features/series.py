from __future__ import annotations

from typing import Sequence

import pandas as pd

MONTH_COLUMN = "month"
REPORTS_COLUMN = "reports"


def month_axis(months: pd.Series) -> pd.DatetimeIndex:
    """Contiguous month starts from the earliest to the latest observed month."""
    observed = pd.to_datetime(months, errors="coerce").dropna()
    if observed.empty:
        return pd.DatetimeIndex([], name=MONTH_COLUMN)
    return pd.date_range(
        start=observed.min(),
        end=observed.max(),
        freq="MS",
        name=MONTH_COLUMN,
    )


def build_monthly_series(df: pd.DataFrame) -> pd.DataFrame:
    """Zero-filled report counts per month over the observed month range.

    Expects the ``report_month`` column added by ``add_time_features``; rows
    with an unparseable report date do not contribute to any month.
    """
    parsed = df.loc[df["report_month"].notna(), "report_month"]
    axis = month_axis(parsed)
    if axis.empty:
        return pd.DataFrame(
            {
                MONTH_COLUMN: pd.Series(dtype="datetime64[ns]"),
                REPORTS_COLUMN: pd.Series(dtype="int64"),
            }
        )

    counts = parsed.value_counts().sort_index()
    counts.index = pd.DatetimeIndex(counts.index)
    grouped = counts.reindex(axis, fill_value=0).astype("int64")
    grouped.index.name = MONTH_COLUMN
    return grouped.rename(REPORTS_COLUMN).reset_index()


def build_monthly_category_counts(
    df: pd.DataFrame,
    category_column: str,
    categories: Sequence[str],
    labels: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Per-month counts for each category value on the same axis as the totals.

    Every category in ``categories`` gets a column (renamed to the matching
    entry of ``labels`` when given); months or categories without matches
    report 0.
    """
    column_names = list(labels) if labels is not None else list(categories)
    if len(column_names) != len(categories):
        raise ValueError("labels must match categories one-to-one")

    parsed = df.loc[df["report_month"].notna(), ["report_month", category_column]]
    axis = month_axis(parsed["report_month"])
    if axis.empty:
        columns = {MONTH_COLUMN: pd.Series(dtype="datetime64[ns]")}
        columns.update({name: pd.Series(dtype="int64") for name in column_names})
        return pd.DataFrame(columns)

    grid = parsed.groupby(["report_month", category_column]).size().unstack(fill_value=0)
    grid.index = pd.DatetimeIndex(grid.index)
    grid = grid.reindex(index=axis, columns=list(categories), fill_value=0).astype("int64")
    grid.index.name = MONTH_COLUMN
    grid.columns = column_names
    return grid.reset_index()
