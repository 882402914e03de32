from __future__ import annotations

import pandas as pd
import pytest

from mp_analytics.config import TimeConfig
from mp_analytics.preprocess.time import (
    add_time_features,
    expand_two_digit_year,
    parse_reported_on,
    parse_reported_on_series,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1/5/23 2:30 PM", pd.Timestamp(2023, 1, 5, 14, 30)),
        ("01/05/2023", pd.Timestamp(2023, 1, 5)),
        ("12/31/2022 12:05 am", pd.Timestamp(2022, 12, 31, 0, 5)),
        ("7/4/2021 12:00 PM", pd.Timestamp(2021, 7, 4, 12, 0)),
        ("  3/9/99  ", pd.Timestamp(1999, 3, 9)),
        ("3/9/2024 9:15AM", pd.Timestamp(2024, 3, 9, 9, 15)),
    ],
)
def test_parse_reported_on_recognized_formats(raw: str, expected: pd.Timestamp) -> None:
    assert parse_reported_on(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "   ",
        "not available",
        "N/A",
        "na",
        "Unknown",
        "2023-01-05",
        "1/5",
        "2/30/2023",
        "13/1/2023",
        "1/5/2023 13:00 PM",
        "1/5/2023 2:75 PM",
        "1/5/2023 14:30",
        "1/5/123",
        "garbage",
    ],
)
def test_parse_reported_on_unparseable(raw: object) -> None:
    assert parse_reported_on(raw) is None


def test_two_digit_year_pivot_is_explicit() -> None:
    assert expand_two_digit_year(0) == 2000
    assert expand_two_digit_year(49) == 2049
    assert expand_two_digit_year(50) == 1950
    assert expand_two_digit_year(99) == 1999
    assert parse_reported_on("1/1/30", two_digit_year_pivot=20) == pd.Timestamp(1930, 1, 1)
    assert parse_reported_on("1/1/30", two_digit_year_pivot=50) == pd.Timestamp(2030, 1, 1)


def test_parse_reported_on_series_marks_unparseable_as_nat() -> None:
    values = pd.Series(["1/5/23 2:30 PM", "not available", None], index=[10, 11, 12])
    parsed = parse_reported_on_series(values)

    assert list(parsed.index) == [10, 11, 12]
    assert parsed.loc[10] == pd.Timestamp(2023, 1, 5, 14, 30)
    assert parsed.loc[11:].isna().all()


def test_add_time_features_floors_to_month() -> None:
    df = pd.DataFrame({"reported_on": ["1/5/23 2:30 PM", "01/31/2023", "bad", "2/1/2023"]})
    out = add_time_features(df, config=TimeConfig())

    assert "reported_at" not in df.columns
    assert out["report_month"].tolist()[:2] == [pd.Timestamp(2023, 1, 1)] * 2
    assert pd.isna(out.loc[2, "report_month"])
    assert out.loc[3, "report_month"] == pd.Timestamp(2023, 2, 1)


def test_add_time_features_handles_empty_frame() -> None:
    out = add_time_features(pd.DataFrame({"reported_on": pd.Series([], dtype=object)}))
    assert out.empty
    assert "report_month" in out.columns


def test_series_parse_agrees_with_scalar_parse() -> None:
    raw = [
        "1/5/23 2:30 PM",
        "1/1/49",
        "1/1/50",
        "12/31/2022 12:05 AM",
        "7/4/2021 12:00 pm",
        "2/29/2024",
        "2/29/2023",
        "0/5/2023",
        "1/5/2023 0:30 AM",
        "1/5/1600",
        "Unknown",
        None,
    ]
    parsed = parse_reported_on_series(pd.Series(raw, dtype=object))

    assert parsed.dtype == "datetime64[ns]"
    assert parsed.tolist()[:6] == [
        pd.Timestamp(2023, 1, 5, 14, 30),
        pd.Timestamp(2049, 1, 1),
        pd.Timestamp(1950, 1, 1),
        pd.Timestamp(2022, 12, 31, 0, 5),
        pd.Timestamp(2021, 7, 4, 12, 0),
        pd.Timestamp(2024, 2, 29),
    ]
    assert parsed.iloc[6:].isna().all()
    for value, stamp in zip(raw, parsed):
        scalar = parse_reported_on(value)
        assert (scalar is None and pd.isna(stamp)) or scalar == stamp


def test_series_parse_honours_pivot() -> None:
    parsed = parse_reported_on_series(pd.Series(["1/1/30", "1/1/2030"]), two_digit_year_pivot=20)
    assert parsed.tolist() == [pd.Timestamp(1930, 1, 1), pd.Timestamp(2030, 1, 1)]
