from __future__ import annotations

import json
import math

import numpy as np
import pandas as pd
import pytest

from mp_analytics.features.rolling import (
    moving_average,
    round_half_up,
    round_series,
    sample_std,
    trailing_windows,
    z_score,
)


def test_window_of_one_returns_raw_values() -> None:
    values = [3.0, 0.0, 7.0]
    assert moving_average(values, 1).tolist() == values
    assert np.isnan(sample_std(values, 1)).all()
    assert np.isnan(z_score(values, 1)).all()


def test_windows_shrink_at_series_start() -> None:
    windows = trailing_windows([1, 2, 3, 4], 3)
    assert [w.tolist() for w in windows] == [[1.0], [1.0, 2.0], [1.0, 2.0, 3.0], [2.0, 3.0, 4.0]]
    assert moving_average([1, 2, 3, 4], 3).tolist() == [1.0, 1.5, 2.0, 3.0]


def test_sample_std_uses_n_minus_one() -> None:
    std = sample_std(pd.Series([2, 4, 4, 4, 5, 5, 7, 9]), 8)
    assert math.isnan(std[0])
    assert std[1] == pytest.approx(math.sqrt(2.0))
    assert std[-1] == pytest.approx(2.13808993529939)


def test_z_score_undefined_for_flat_window() -> None:
    z = z_score([5, 5, 5, 8], 12)
    assert math.isnan(z[0])
    assert math.isnan(z[1])
    assert math.isnan(z[2])
    assert z[3] == pytest.approx((8 - 5.75) / 1.5)


def test_empty_input_yields_empty_output() -> None:
    assert moving_average([], 6).size == 0
    assert z_score([], 12).size == 0


@pytest.mark.parametrize("window", [0, -3])
def test_non_positive_window_is_rejected(window: int) -> None:
    with pytest.raises(ValueError, match="window"):
        moving_average([1.0], window)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2.675, 2.68),
        (0.125, 0.13),
        (-0.125, -0.13),
        (1.0, 1.0),
        (33.333333, 33.33),
    ],
)
def test_round_half_up(value: float, expected: float) -> None:
    assert round_half_up(value) == expected


def test_round_half_up_maps_missing_to_none() -> None:
    assert round_half_up(None) is None
    assert round_half_up(float("nan")) is None
    assert round_half_up(float("inf")) is None
    assert round_series([1.005, float("nan")]) == [1.01, None]


def test_flat_float_window_has_zero_std_and_no_z_score() -> None:
    std = sample_std([0.1, 0.1, 0.1], 12)
    z = z_score([0.1, 0.1, 0.1], 12)

    assert math.isnan(std[0])
    assert std[1:].tolist() == [0.0, 0.0]
    assert np.isnan(z).all()
    assert round_series(z) == [None, None, None]


def test_round_half_up_never_returns_negative_zero() -> None:
    rounded = round_series([-0.001, -0.004])

    assert rounded == [0.0, 0.0]
    assert all(math.copysign(1.0, value) == 1.0 for value in rounded)
    assert json.dumps(rounded) == "[0.0, 0.0]"
