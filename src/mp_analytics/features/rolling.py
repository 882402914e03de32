from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence, Union

import numpy as np
import pandas as pd

ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


def _as_float_array(values: ArrayLike) -> np.ndarray:
    if isinstance(values, pd.Series):
        return pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
    return np.asarray(values, dtype=float)


def _check_window(window: int) -> int:
    if window <= 0:
        raise ValueError("window must be >= 1")
    return int(window)


def trailing_windows(values: ArrayLike, window: int) -> list[np.ndarray]:
    """Trailing windows ending at each position, shrinking near the start."""
    size = _check_window(window)
    array = _as_float_array(values)
    return [array[max(0, idx - size + 1) : idx + 1] for idx in range(array.size)]


def moving_average(values: ArrayLike, window: int) -> np.ndarray:
    """Trailing mean over up to ``window`` points, always defined."""
    windows = trailing_windows(values, window)
    return np.array([float(np.mean(points)) for points in windows], dtype=float)


def _window_std(points: np.ndarray) -> float:
    if points.size < 2:
        return np.nan
    # Constant windows are exactly 0, even for values like 0.1.
    if np.ptp(points) == 0.0:
        return 0.0
    return float(np.std(points, ddof=1))


def sample_std(values: ArrayLike, window: int) -> np.ndarray:
    """Trailing sample standard deviation; NaN where the window holds one point."""
    windows = trailing_windows(values, window)
    return np.array([_window_std(points) for points in windows], dtype=float)


def z_score(values: ArrayLike, window: int) -> np.ndarray:
    """Deviation from the trailing mean in trailing standard deviations.

    NaN wherever the standard deviation is undefined or zero.
    """
    array = _as_float_array(values)
    mean = moving_average(array, window)
    std = sample_std(array, window)
    valid = np.isfinite(std) & (std > 0.0)
    return np.divide(
        array - mean,
        std,
        out=np.full(array.shape, np.nan, dtype=float),
        where=valid,
    )


def round_half_up(value: float | None, places: int = 2) -> float | None:
    """Round half away from zero, returning ``None`` for missing values."""
    if value is None:
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    quantum = Decimal(1).scaleb(-places)
    rounded = float(Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP))
    # -0.0 would serialize as "-0.0".
    return rounded + 0.0


def round_series(values: ArrayLike, places: int = 2) -> list[float | None]:
    return [round_half_up(value, places=places) for value in _as_float_array(values).tolist()]
