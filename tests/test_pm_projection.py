# ABOUTME: Tests goal projection arithmetic for weeks-to-goal and rate of improvement.
# ABOUTME: Ensures missing metadata blanks only dependent fields and reversed goals are flagged.

from datetime import timedelta

import pytest

from conftest import DAY0, make_goal, make_series

from src.common.schemas import Observation, TrendLine
from src.common.validation import REVERSED_GOAL_DATES
from src.progress_monitoring.projection import actual_roi, expected_roi, project_goal, weeks_to_goal
from src.progress_monitoring.trend import fit_trend


def _trend(weekly_slope):
    return TrendLine(slope=weekly_slope / 7, intercept=0.0, point_count=2, origin=DAY0)


def test_roi_arithmetic_and_on_track():
    goal = make_goal(goal_score=50, benchmark_score=30, benchmark_day=0, target_day=70)
    series = (Observation("s1", "g1", DAY0 + timedelta(days=35), 44.0, "ORF"),)

    projection = project_goal(None, series, goal)

    assert projection.expected_roi == pytest.approx(2.0)
    assert projection.actual_roi == pytest.approx(2.8)
    assert projection.on_track is True
    assert projection.weeks_to_goal is None
    assert projection.current_score == 44.0


def test_weeks_to_goal():
    assert weeks_to_goal(40, 50, 2) == 5
    assert weeks_to_goal(40, 50, 3) == 4
    assert weeks_to_goal(40, 50, 0) is None
    assert weeks_to_goal(40, 50, -1.5) is None
    assert weeks_to_goal(50, 50, 2) is None
    assert weeks_to_goal(55, 50, 2) is None


def test_project_goal_weeks_from_trend_and_latest_score():
    series = tuple(make_series([36, 38, 40]))
    goal = make_goal(goal_score=50)

    projection = project_goal(fit_trend(series), series, goal)

    assert projection.weeks_to_goal == 5


def test_actual_roi_requires_time_after_benchmark():
    assert actual_roi(44, DAY0, 30, DAY0) is None
    assert actual_roi(44, DAY0 - timedelta(days=7), 30, DAY0) is None
    assert actual_roi(44, DAY0 + timedelta(days=7), None, DAY0) is None
    assert actual_roi(44, DAY0 + timedelta(days=7), 30, None) is None


def test_expected_roi_requires_both_dates():
    assert expected_roi(make_goal(target_day=None)) is None
    assert expected_roi(make_goal(benchmark_day=None)) is None
    assert expected_roi(make_goal(benchmark_day=10, target_day=10)) is None


def test_missing_benchmark_keeps_weeks_to_goal():
    series = tuple(make_series([36, 38, 40]))
    goal = make_goal(goal_score=50, benchmark_score=None, benchmark_day=None, target_day=None)

    projection = project_goal(fit_trend(series), series, goal)

    assert projection.weeks_to_goal == 5
    assert projection.actual_roi is None
    assert projection.expected_roi is None
    assert projection.on_track is None


def test_reversed_goal_dates_are_flagged_not_corrected():
    series = tuple(make_series([30, 34], start=DAY0 + timedelta(days=7)))
    goal = make_goal(benchmark_day=70, target_day=0)

    projection = project_goal(fit_trend(series), series, goal)

    assert REVERSED_GOAL_DATES in projection.issues
    assert projection.expected_roi is None
    assert projection.on_track is None


def test_empty_series_yields_all_none():
    projection = project_goal(_trend(2.0), (), make_goal())

    assert projection.weeks_to_goal is None
    assert projection.actual_roi is None
    assert projection.expected_roi is None
    assert projection.on_track is None


def test_off_track_when_actual_below_expected():
    goal = make_goal(goal_score=50, benchmark_score=30, benchmark_day=0, target_day=70)
    series = (Observation("s1", "g1", DAY0 + timedelta(days=35), 35.0, "ORF"),)

    projection = project_goal(None, series, goal)

    assert projection.actual_roi == pytest.approx(1.0)
    assert projection.on_track is False


def test_rounded_values_for_display():
    goal = make_goal(goal_score=50, benchmark_score=30, benchmark_day=0, target_day=21)
    series = (Observation("s1", "g1", DAY0 + timedelta(days=21), 40.0, "ORF"),)

    shown = project_goal(None, series, goal).rounded()

    assert shown["expected_roi"] == 6.67
    assert shown["actual_roi"] == 3.33
