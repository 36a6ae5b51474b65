# ABOUTME: Computes the summary statistics shown beside a progress-monitoring chart.
# ABOUTME: Reports current and average score, trend direction, and weeks to goal.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.common.schemas import Series, TrendDirection, TrendLine

from .projection import weeks_to_goal
from .trend import TREND_THRESHOLD_PER_WEEK, classify_trend


@dataclass(frozen=True)
class ProgressSummary:
    point_count: int
    current_score: Optional[float]
    average_score: Optional[float]
    trend: Optional[TrendDirection]
    weeks_to_goal: Optional[int]


def summarize_series(
    series: Series,
    trend: Optional[TrendLine],
    goal_score: Optional[float] = None,
    threshold: float = TREND_THRESHOLD_PER_WEEK,
) -> ProgressSummary:
    if not series:
        return ProgressSummary(point_count=0, current_score=None, average_score=None, trend=None, weeks_to_goal=None)

    current = max(reversed(series), key=lambda obs: obs.date).score
    average = round(sum(obs.score for obs in series) / len(series), 1)

    weeks = None
    if goal_score is not None and trend is not None:
        weeks = weeks_to_goal(current, goal_score, trend.weekly_slope)

    return ProgressSummary(
        point_count=len(series),
        current_score=current,
        average_score=average,
        trend=classify_trend(trend, threshold),
        weeks_to_goal=weeks,
    )
