from __future__ import annotations

from enum import Enum
from typing import Any

import pandas as pd


class DurationBucket(str, Enum):
    zero_to_one_day = "0-1d"
    two_to_seven_days = "2-7d"
    eight_to_twenty_days = "8-20d"
    twenty_one_to_eighty_nine_days = "21-89d"
    ninety_plus_days = "90+d"
    still_missing = "Still Missing"
    unknown_invalid = "Unknown/Invalid"


BUCKET_ORDER = [bucket.value for bucket in DurationBucket]
HISTOGRAM_BUCKETS = [
    bucket.value for bucket in DurationBucket if bucket is not DurationBucket.unknown_invalid
]
# Inclusive upper bound in whole days for each elapsed-time bucket.
ELAPSED_DAY_LIMITS = (
    (1, DurationBucket.zero_to_one_day),
    (7, DurationBucket.two_to_seven_days),
    (20, DurationBucket.eight_to_twenty_days),
    (89, DurationBucket.twenty_one_to_eighty_nine_days),
)


def to_calendar_date(value: Any) -> pd.Timestamp | None:
    """Coerce a date-like value to a midnight timestamp; unreadable input is absent."""
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    parsed = to_calendar_date_series(pd.Series([value], dtype=object)).iloc[0]
    return None if pd.isna(parsed) else parsed


def bucket_for_elapsed_days(days: int) -> DurationBucket:
    if days < 0:
        return DurationBucket.unknown_invalid
    for limit, bucket in ELAPSED_DAY_LIMITS:
        if days <= limit:
            return bucket
    return DurationBucket.ninety_plus_days


def bucketize(last_seen: Any, located: Any) -> DurationBucket:
    last_seen_date = to_calendar_date(last_seen)
    located_date = to_calendar_date(located)
    if located_date is None and last_seen_date is not None:
        return DurationBucket.still_missing
    if located_date is not None and last_seen_date is not None:
        return bucket_for_elapsed_days((located_date - last_seen_date).days)
    return DurationBucket.unknown_invalid


def to_calendar_date_series(values: pd.Series) -> pd.Series:
    # Blank or unreadable text coerces to NaT.
    parsed = pd.to_datetime(values.astype(object), format="mixed", errors="coerce")
    return parsed.dt.normalize()


def add_duration_features(df: pd.DataFrame) -> pd.DataFrame:
    """Attach ``days_elapsed`` (resolved cases only) and ``duration_bucket``."""
    working = df.copy()
    last_seen = to_calendar_date_series(working["last_seen_date"])
    located = to_calendar_date_series(working["located_date"])

    elapsed = (located - last_seen).dt.days
    resolved = last_seen.notna() & located.notna() & (elapsed >= 0)
    working["days_elapsed"] = elapsed.where(resolved).astype("Int64")

    still_missing = located.isna() & last_seen.notna()
    buckets = pd.Series(DurationBucket.unknown_invalid.value, index=working.index, dtype=object)
    buckets.loc[still_missing] = DurationBucket.still_missing.value
    resolved_buckets = elapsed[resolved].map(
        lambda days: bucket_for_elapsed_days(int(days)).value
    )
    buckets.loc[resolved_buckets.index] = resolved_buckets
    working["duration_bucket"] = buckets
    working["is_still_missing"] = still_missing
    return working
