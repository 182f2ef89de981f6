"""Statistical primitives shared by every analytics module.

All functions are pure and return ``None`` instead of raising when the
input is too small to produce a meaningful statistic:

  - Central tendency and spread (mean, median, sample std / variance)
  - Percentiles with linear interpolation between order statistics
  - z-scores, range normalisation and clamping
  - Rolling mean and exponential moving average
  - Ordinary least squares over index-as-x, Pearson correlation
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy import stats as sps

from healthtiers.analytics.components import TrendDirection


# ---------------------------------------------------------------------------
# Basic statistics
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    if len(values) == 0:
        return None
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def median(values: Sequence[float]) -> float | None:
    if len(values) == 0:
        return None
    return float(np.median(np.asarray(values, dtype=np.float64)))


def standard_deviation(values: Sequence[float]) -> float | None:
    """Sample standard deviation (n-1 denominator).

    Returns None if fewer than 2 values are provided.
    """
    if len(values) < 2:
        return None
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


def variance(values: Sequence[float]) -> float | None:
    """Sample variance (n-1 denominator), None below 2 values."""
    if len(values) < 2:
        return None
    return float(np.var(np.asarray(values, dtype=np.float64), ddof=1))


def value_range(values: Sequence[float]) -> float | None:
    if len(values) == 0:
        return None
    return float(max(values) - min(values))


# ---------------------------------------------------------------------------
# Percentile / z-score
# ---------------------------------------------------------------------------


def percentile(values: Sequence[float], pct: float) -> float | None:
    """Percentile with linear interpolation between order statistics.

    Args:
        values: Sample values (any order).
        pct: Percentile in [0, 100].

    Returns:
        The interpolated value, or None for empty input or pct outside [0, 100].
    """
    if len(values) == 0 or pct < 0 or pct > 100:
        return None
    return float(np.percentile(np.asarray(values, dtype=np.float64), pct))


def z_score(value: float, avg: float, std: float) -> float:
    """(value - avg) / std, or 0 when std is not positive."""
    if std <= 0:
        return 0.0
    return (value - avg) / std


def z_score_against(value: float, values: Sequence[float]) -> float | None:
    """z-score of *value* against the sample *values*."""
    avg = mean(values)
    std = standard_deviation(values)
    if avg is None or std is None or std <= 0:
        return None
    return (value - avg) / std


# ---------------------------------------------------------------------------
# Normalisation / clamping / rounding
# ---------------------------------------------------------------------------


def normalize(value: float, lo: float, hi: float) -> float:
    """Position of *value* in [lo, hi] as a fraction (unclamped).

    A degenerate range returns the midpoint 0.5.
    """
    if hi <= lo:
        return 0.5
    return (value - lo) / (hi - lo)


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def normalize_to_scale(
    value: float,
    from_range: tuple[float, float],
    to_range: tuple[float, float] = (0.0, 100.0),
) -> float:
    """Linearly map *value* from *from_range* onto *to_range*.

    The position inside *from_range* is clamped to [0, 1] first, so values
    outside the source range saturate instead of extrapolating.
    """
    fraction = clamp(normalize(value, from_range[0], from_range[1]), 0.0, 1.0)
    return to_range[0] + fraction * (to_range[1] - to_range[0])


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


# ---------------------------------------------------------------------------
# Rolling calculations
# ---------------------------------------------------------------------------


def rolling_mean(values: Sequence[float], window: int) -> list[float] | None:
    """Trailing rolling mean; None when the series is shorter than *window*."""
    if window <= 0 or len(values) < window:
        return None
    arr = np.asarray(values, dtype=np.float64)
    cumsum = np.insert(np.cumsum(arr), 0, 0.0)
    return [float(v) for v in (cumsum[window:] - cumsum[:-window]) / window]


def exponential_moving_average(
    values: Sequence[float],
    alpha: float,
) -> list[float] | None:
    """EMA seeded with the first value: ema[i] = a*x[i] + (1-a)*ema[i-1].

    Returns None for empty input or alpha outside (0, 1].
    """
    if len(values) == 0 or alpha <= 0 or alpha > 1:
        return None
    ema = [float(values[0])]
    for v in values[1:]:
        ema.append(alpha * float(v) + (1.0 - alpha) * ema[-1])
    return ema


# ---------------------------------------------------------------------------
# Trend / correlation
# ---------------------------------------------------------------------------


@dataclass
class Regression:
    """Least-squares line fitted over index-as-x."""

    slope: float
    intercept: float


def linear_regression(values: Sequence[float]) -> Regression | None:
    """Ordinary least squares with x = 0, 1, ..., n-1.

    Returns None if fewer than 2 values are provided.
    """
    if len(values) < 2:
        return None
    y = np.asarray(values, dtype=np.float64)
    x = np.arange(len(y), dtype=np.float64)
    fit = sps.linregress(x, y)
    return Regression(slope=float(fit.slope), intercept=float(fit.intercept))


def trend_direction(slope: float, threshold: float = 0.1) -> TrendDirection:
    """Classify a slope as improving / stable / declining around +-threshold."""
    if slope > threshold:
        return TrendDirection.IMPROVING
    if slope < -threshold:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float | None:
    """Pearson r between two equally long series.

    Returns None for differing lengths, fewer than 2 points, or a series
    with zero variance.
    """
    if len(x) != len(y) or len(x) < 2:
        return None
    xa = np.asarray(x, dtype=np.float64)
    ya = np.asarray(y, dtype=np.float64)
    if np.ptp(xa) == 0 or np.ptp(ya) == 0:
        return None
    r, _ = sps.pearsonr(xa, ya)
    return float(clamp(float(r), -1.0, 1.0))
