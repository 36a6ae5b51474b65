# ABOUTME: Fits ordinary least-squares trend lines to progress-monitoring series.
# ABOUTME: Classifies weekly growth as improving, flat, or declining with fixed thresholds.

from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from src.common.schemas import Series, TrendDirection, TrendLine

from .aggregation import combine_series

TREND_THRESHOLD_PER_WEEK = 0.1


def fit_trend(series: Series) -> Optional[TrendLine]:
    """
    Fit score against day offset from the series' first date.

    Returns None with fewer than two points. When every point falls on the same
    day the slope is 0.0 and the intercept is the mean score.
    """

    if len(series) < 2:
        return None

    origin = min(obs.date for obs in series)
    x = np.array([(obs.date - origin).days for obs in series], dtype=float)
    y = np.array([obs.score for obs in series], dtype=float)

    # Centering keeps the normal equations well conditioned for long date spans.
    x_mean = x.mean()
    y_mean = y.mean()
    sxx = float(np.sum((x - x_mean) ** 2))
    if sxx == 0.0:
        return TrendLine(slope=0.0, intercept=float(y_mean), point_count=len(series), origin=origin)

    sxy = float(np.sum((x - x_mean) * (y - y_mean)))
    slope = sxy / sxx
    intercept = float(y_mean - slope * x_mean)
    return TrendLine(slope=slope, intercept=intercept, point_count=len(series), origin=origin)


def fit_group_trend(series_map: Mapping[str, Series]) -> Optional[TrendLine]:
    """Fit a single line through every student's points combined."""

    return fit_trend(combine_series(series_map))


def classify_weekly_slope(weekly_slope: float, threshold: float = TREND_THRESHOLD_PER_WEEK) -> TrendDirection:
    if weekly_slope > threshold:
        return TrendDirection.IMPROVING
    if weekly_slope < -threshold:
        return TrendDirection.DECLINING
    return TrendDirection.FLAT


def classify_trend(
    trend: Optional[TrendLine], threshold: float = TREND_THRESHOLD_PER_WEEK
) -> Optional[TrendDirection]:
    if trend is None:
        return None
    return classify_weekly_slope(trend.weekly_slope, threshold)
