# ABOUTME: Normalizes raw observations into per-student, date-ordered series.
# ABOUTME: Builds the shared date axis used to place every series and goal marker on one chart.

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from src.common.schemas import GoalRecord, Observation, Series


def build_series(
    observations: Sequence[Observation],
    measure_type: str,
    date_range: Optional[tuple] = None,
) -> Dict[str, Series]:
    """
    Group observations of one measure type into one ascending series per student.

    Steps:
    - Keep only rows for the requested measure type (and date range, if given).
    - Stable-sort each student's rows by date so same-day entries stay in input order.
    - Return students in order of first appearance.

    No de-duplication happens here; callers wanting the latest value per date
    must filter first.
    """

    if date_range is not None:
        start, end = date_range
        observations = filter_by_date_range(observations, start=start, end=end)

    if not observations:
        return {}

    frame = pd.DataFrame(
        {
            "position": range(len(observations)),
            "student_id": [obs.student_id for obs in observations],
            "measure_type": [obs.measure_type for obs in observations],
            "date": pd.to_datetime([obs.date for obs in observations]),
        }
    )
    frame = frame[frame["measure_type"] == measure_type]
    if frame.empty:
        return {}

    series_map: Dict[str, Series] = {}
    for student_id, student_rows in frame.groupby("student_id", sort=False):
        ordered = student_rows.sort_values("date", kind="mergesort")
        series_map[str(student_id)] = tuple(observations[pos] for pos in ordered["position"])
    return series_map


def shared_date_axis(series_map: Mapping[str, Series], goals: Iterable[GoalRecord] = ()) -> List[date]:
    """Sorted union of observation dates plus every benchmark and goal target date."""

    dates = {obs.date for series in series_map.values() for obs in series}
    for goal in goals:
        if goal.benchmark_date is not None:
            dates.add(goal.benchmark_date)
        if goal.goal_target_date is not None:
            dates.add(goal.goal_target_date)
    return sorted(dates)


def match_goals(series_map: Mapping[str, Series], goals: Iterable[GoalRecord]) -> Dict[str, GoalRecord]:
    """
    Pair each series with its student's goal for the same measure type.

    Goals for other measures or for students without a series are dropped; when
    several goals match, the last one supplied wins.
    """

    matched: Dict[str, GoalRecord] = {}
    for goal in goals:
        series = series_map.get(goal.student_id)
        if series and series[0].measure_type == goal.measure_type:
            matched[goal.student_id] = goal
    return matched


def filter_by_date_range(
    observations: Iterable[Observation],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Observation]:
    """Keep observations with start <= date <= end; open bounds are unbounded."""

    kept = []
    for obs in observations:
        if start is not None and obs.date < start:
            continue
        if end is not None and obs.date > end:
            continue
        kept.append(obs)
    return kept


def window_start(today: date, days: Optional[int]) -> Optional[date]:
    """Start date for a trailing "last N days" window; None means all data."""

    if days is None:
        return None
    if days <= 0:
        raise ValueError(f"Window length must be positive, got {days}")
    return today - timedelta(days=days)


def combine_series(series_map: Mapping[str, Series]) -> Series:
    """Merge every student's series into one date-ordered group series."""

    merged = [obs for series in series_map.values() for obs in series]
    # sorted() is stable, so same-day points keep student order.
    return tuple(sorted(merged, key=lambda obs: obs.date))
