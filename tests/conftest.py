# ABOUTME: Shared builders for progress-monitoring test records.
# ABOUTME: Keeps observation and goal construction terse across test modules.

from datetime import date, timedelta

import pytest

from src.common.schemas import GoalRecord, Observation

DAY0 = date(2024, 1, 8)


def make_series(scores, student_id="s1", start=DAY0, step_days=7, measure_type="ORF", group_id="g1"):
    return [
        Observation(
            student_id=student_id,
            group_id=group_id,
            date=start + timedelta(days=i * step_days),
            score=score,
            measure_type=measure_type,
        )
        for i, score in enumerate(scores)
    ]


def make_goal(student_id="s1", goal_score=50.0, benchmark_score=30.0, benchmark_day=0, target_day=70, measure_type="ORF"):
    return GoalRecord(
        student_id=student_id,
        group_id="g1",
        measure_type=measure_type,
        goal_score=goal_score,
        benchmark_score=benchmark_score,
        benchmark_date=DAY0 + timedelta(days=benchmark_day) if benchmark_day is not None else None,
        goal_target_date=DAY0 + timedelta(days=target_day) if target_day is not None else None,
    )


@pytest.fixture
def group_records():
    observations = (
        make_series([20, 24, 27, 31, 34], student_id="ana")
        + make_series([40, 38, 37, 35], student_id="ben", start=DAY0 + timedelta(days=3))
        + make_series([12, 12, 13], student_id="cy", measure_type="MAZE")
    )
    goals = [
        make_goal("ana", goal_score=50, benchmark_score=20, benchmark_day=0, target_day=70),
        make_goal("ben", goal_score=36, benchmark_score=None, benchmark_day=None, target_day=None),
        make_goal("cy", goal_score=20, measure_type="MAZE"),
    ]
    return observations, goals
