# ABOUTME: Projects goal attainment from a trend line and a student's goal record.
# ABOUTME: Computes weeks-to-goal, actual and expected rate of improvement, and on-track status.

from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Optional

from src.common.schemas import GoalRecord, Projection, Series, TrendLine
from src.common.validation import REVERSED_GOAL_DATES

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def weeks_between(start: date, end: date) -> float:
    return (end - start).days / DAYS_PER_WEEK


def weeks_to_goal(current_score: float, goal_score: float, weekly_slope: float) -> Optional[int]:
    """Whole weeks until the trend reaches the goal; None for flat or falling trends or a met goal."""

    if weekly_slope <= 0 or current_score >= goal_score:
        return None
    # Absorb float noise so an exact multiple of the slope does not round up a week.
    return math.ceil(round((goal_score - current_score) / weekly_slope, 9))


def actual_roi(
    latest_score: float,
    latest_date: date,
    benchmark_score: Optional[float],
    benchmark_date: Optional[date],
) -> Optional[float]:
    if benchmark_score is None or benchmark_date is None:
        return None
    elapsed = weeks_between(benchmark_date, latest_date)
    if elapsed <= 0:
        return None
    return (latest_score - benchmark_score) / elapsed


def expected_roi(goal: GoalRecord) -> Optional[float]:
    if goal.benchmark_score is None or goal.benchmark_date is None or goal.goal_target_date is None:
        return None
    total = weeks_between(goal.benchmark_date, goal.goal_target_date)
    if total <= 0:
        return None
    return (goal.goal_score - goal.benchmark_score) / total


def project_goal(trend: Optional[TrendLine], series: Series, goal: GoalRecord) -> Projection:
    """
    Combine a trend, the student's series, and their goal into a Projection.

    Each field is computed independently, so missing benchmark data only blanks
    the ROI fields while weeks-to-goal can still be reported.
    """

    if not series:
        return Projection()

    # Latest by date; among same-day points the last one entered wins.
    latest = max(reversed(series), key=lambda obs: obs.date)
    issues: List[str] = []

    weeks = None
    if trend is not None:
        weeks = weeks_to_goal(latest.score, goal.goal_score, trend.weekly_slope)

    actual = actual_roi(latest.score, latest.date, goal.benchmark_score, goal.benchmark_date)

    if goal.has_reversed_dates:
        issues.append(REVERSED_GOAL_DATES)
        logger.warning(
            "Skipping expected ROI for student %s: goal target %s precedes benchmark %s",
            goal.student_id,
            goal.goal_target_date,
            goal.benchmark_date,
        )
        expected = None
    else:
        expected = expected_roi(goal)

    on_track = None
    if actual is not None and expected is not None:
        on_track = actual >= expected

    return Projection(
        weeks_to_goal=weeks,
        actual_roi=actual,
        expected_roi=expected,
        on_track=on_track,
        current_score=latest.score,
        issues=tuple(issues),
    )
