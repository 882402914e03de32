from __future__ import annotations

import logging
import re
from typing import Any

import pandas as pd

from mp_analytics.config import TimeConfig

LOGGER = logging.getLogger(__name__)

DEFAULT_TWO_DIGIT_YEAR_PIVOT = 50
# Intake systems export `m/d/yy h:mm AM` or a bare `m/d/yyyy`; nothing else is trusted.
REPORTED_ON_RE = re.compile(
    r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4}|\d{2})"
    r"(?:\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*(?P<meridiem>[AP]M))?$",
    re.IGNORECASE,
)
# Bounds of datetime64[ns].
MIN_YEAR = 1679
MAX_YEAR = 2261


def expand_two_digit_year(year: int, pivot: int = DEFAULT_TWO_DIGIT_YEAR_PIVOT) -> int:
    """Map 00..pivot-1 to the 2000s and pivot..99 to the 1900s."""
    return 2000 + year if year < pivot else 1900 + year


def parse_reported_on(
    raw: Any,
    two_digit_year_pivot: int = DEFAULT_TWO_DIGIT_YEAR_PIVOT,
) -> pd.Timestamp | None:
    """Parse a free-text "reported on" value; ``None`` means unparseable."""
    if raw is None or (pd.api.types.is_scalar(raw) and pd.isna(raw)):
        return None
    parsed = parse_reported_on_series(
        pd.Series([raw], dtype=object), two_digit_year_pivot=two_digit_year_pivot
    ).iloc[0]
    return None if pd.isna(parsed) else parsed


def parse_reported_on_series(
    values: pd.Series,
    two_digit_year_pivot: int = DEFAULT_TWO_DIGIT_YEAR_PIVOT,
) -> pd.Series:
    """Vectorized ``parse_reported_on``; NaT marks unparseable values."""
    text = values.astype(object).where(values.notna(), "").astype(str).str.strip()
    parts = text.str.extract(REPORTED_ON_RE.pattern, flags=re.IGNORECASE)

    year = pd.to_numeric(parts["year"], errors="coerce")
    two_digit = parts["year"].str.len().eq(2)
    expanded = (year + 2000).where(year < two_digit_year_pivot, year + 1900)
    year = year.where(~two_digit, expanded)

    hour_12 = pd.to_numeric(parts["hour"], errors="coerce")
    minute = pd.to_numeric(parts["minute"], errors="coerce")
    has_time = hour_12.notna()
    is_pm = parts["meridiem"].str.upper().eq("PM")
    hour = (hour_12 % 12 + is_pm.astype(int) * 12).where(has_time, 0)

    valid = (
        year.between(MIN_YEAR, MAX_YEAR)
        & (~has_time | (hour_12.between(1, 12) & (minute <= 59)))
    )
    parsed = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    if not valid.any():
        return parsed

    fields = pd.DataFrame(
        {
            "year": year,
            "month": pd.to_numeric(parts["month"], errors="coerce"),
            "day": pd.to_numeric(parts["day"], errors="coerce"),
            "hour": hour,
            "minute": minute.where(has_time, 0),
        }
    ).loc[valid].astype("int64").astype(str)
    # Zero-padded fields keep the strict ISO format path.
    fields = fields.apply(lambda column: column.str.zfill(2))
    stamps = (
        fields["year"]
        + "-"
        + fields["month"]
        + "-"
        + fields["day"]
        + " "
        + fields["hour"]
        + ":"
        + fields["minute"]
    )
    # Calendar-invalid dates such as 2/30 coerce to NaT.
    parsed.loc[valid] = pd.to_datetime(stamps, format="%Y-%m-%d %H:%M", errors="coerce")
    return parsed


def month_floor(timestamps: pd.Series) -> pd.Series:
    return timestamps.dt.to_period("M").dt.to_timestamp()


def add_time_features(df: pd.DataFrame, config: TimeConfig | None = None) -> pd.DataFrame:
    working = df.copy()
    pivot = config.two_digit_year_pivot if config is not None else DEFAULT_TWO_DIGIT_YEAR_PIVOT
    working["reported_at"] = parse_reported_on_series(
        working["reported_on"], two_digit_year_pivot=pivot
    )
    working["report_month"] = month_floor(working["reported_at"])

    unparseable = int(working["reported_at"].isna().sum())
    if unparseable:
        LOGGER.debug("Unparseable reported_on values: %d of %d", unparseable, len(working))
    return working
