# ABOUTME: Tests frame-to-record conversion, summary statistics, and monitoring cadence reminders.
# ABOUTME: Uses small synthetic tables and series to exercise each helper.

from datetime import date, timedelta

import pandas as pd
import pytest

from conftest import DAY0, make_series

from src.common.config import AnalyticsConfig
from src.common.schemas import TrendDirection
from src.progress_monitoring.aggregation import build_series
from src.progress_monitoring.cadence import find_due_students, frequency_label, last_observation_dates, pm_frequency_days
from src.common.validation import InvalidRecordError
from src.progress_monitoring.records import goals_from_frame, observations_from_frame, observations_to_frame
from src.progress_monitoring.summary import summarize_series
from src.progress_monitoring.trend import fit_trend


def test_observations_from_frame_skips_group_level_rows():
    frame = pd.DataFrame(
        {
            "student_id": ["s1", None, "s2"],
            "group_id": [1, 1, 1],
            "date": ["2024-01-08", "2024-01-08", "2024-01-15"],
            "score": [40, 41, 52.5],
            "measure_type": ["ORF", "ORF", "ORF"],
            "notes": ["cold read", None, float("nan")],
        }
    )

    observations = observations_from_frame(frame)

    assert [obs.student_id for obs in observations] == ["s1", "s2"]
    assert observations[0].date == date(2024, 1, 8)
    assert observations[0].group_id == "1"
    assert observations[0].notes == "cold read"
    assert observations[1].score == 52.5
    assert observations[1].notes is None


def test_observations_from_frame_requires_columns():
    with pytest.raises(ValueError):
        observations_from_frame(pd.DataFrame({"student_id": ["s1"]}))


def test_observations_round_trip_through_frame():
    observations = make_series([10, 12])
    assert observations_from_frame(observations_to_frame(observations)) == observations


def test_goals_from_frame_handles_optional_columns():
    frame = pd.DataFrame(
        {
            "student_id": ["s1", "s2"],
            "group_id": ["g1", "g1"],
            "measure_type": ["ORF", "ORF"],
            "goal_score": [50, 60],
            "benchmark_score": [30, None],
            "benchmark_date": ["2024-01-08", None],
            "goal_target_date": [pd.Timestamp("2024-03-18"), pd.NaT],
        }
    )

    goals = goals_from_frame(frame)

    assert goals[0].benchmark_score == 30.0
    assert goals[0].benchmark_date == date(2024, 1, 8)
    assert goals[0].goal_target_date == date(2024, 3, 18)
    assert goals[1].benchmark_score is None
    assert goals[1].benchmark_date is None
    assert goals[1].goal_target_date is None


def test_goals_from_frame_rejects_missing_goal_score():
    frame = pd.DataFrame(
        {
            "student_id": ["s1"],
            "group_id": ["g1"],
            "measure_type": ["ORF"],
            "goal_score": [None],
        }
    )

    with pytest.raises(InvalidRecordError, match="no goal score"):
        goals_from_frame(frame)


def test_summarize_series_reports_current_average_and_trend():
    series = tuple(make_series([36, 38, 41]))

    summary = summarize_series(series, fit_trend(series), goal_score=50)

    assert summary.point_count == 3
    assert summary.current_score == 41
    assert summary.average_score == 38.3
    assert summary.trend is TrendDirection.IMPROVING
    assert summary.weeks_to_goal == 4


def test_summarize_series_with_too_little_data():
    series = tuple(make_series([36]))

    summary = summarize_series(series, fit_trend(series), goal_score=50)

    assert summary.trend is None
    assert summary.weeks_to_goal is None
    assert summarize_series((), None).current_score is None


def test_pm_frequency_by_tier():
    assert pm_frequency_days(3) == 7
    assert pm_frequency_days(2) == 14
    assert pm_frequency_days(None) == 7
    assert pm_frequency_days(1) == 7
    assert frequency_label(14) == "bi-weekly"


def test_find_due_students_flags_stale_and_missing_data():
    series_map = build_series(
        make_series([10], student_id="weekly_ok", start=date(2024, 3, 25))
        + make_series([10], student_id="weekly_late", start=date(2024, 3, 20))
        + make_series([10], student_id="biweekly_ok", start=date(2024, 3, 20)),
        "ORF",
    )
    tiers = {"weekly_ok": 3, "weekly_late": 3, "biweekly_ok": 2, "never": 2}

    reminders = find_due_students(
        list(series_map) + ["never"],
        last_observation_dates(series_map),
        today=date(2024, 3, 30),
        tiers=tiers,
        config=AnalyticsConfig(),
    )

    by_student = {r.student_id: r for r in reminders}
    assert set(by_student) == {"weekly_late", "never"}
    assert by_student["weekly_late"].days_since_last == 10
    assert "last recorded 10 days ago" in by_student["weekly_late"].message
    assert by_student["never"].days_since_last is None
    assert "bi-weekly" in by_student["never"].message


def test_last_observation_dates_uses_newest_point():
    series_map = build_series(make_series([1, 2, 3]), "ORF")
    assert last_observation_dates(series_map) == {"s1": DAY0 + timedelta(days=14)}
