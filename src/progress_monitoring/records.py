# ABOUTME: Converts tabular progress-monitoring data into canonical Observation and GoalRecord rows.
# ABOUTME: Bridges parquet/CSV frames from the persistence layer into the pure analytics engine.

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

import pandas as pd

from src.common.schemas import GoalRecord, Observation
from src.common.validation import InvalidRecordError

OBSERVATION_COLUMNS = ["student_id", "group_id", "date", "score", "measure_type"]
GOAL_COLUMNS = ["student_id", "group_id", "measure_type", "goal_score"]


def observations_from_frame(frame: pd.DataFrame) -> List[Observation]:
    """
    Build observations from a frame with columns student_id, group_id, date, score, measure_type.

    Rows without a student are group-level entries and are skipped. Row order is
    preserved so same-day ties keep their original order downstream.
    """

    _require_columns(frame, OBSERVATION_COLUMNS)
    if frame.empty:
        return []

    rows = frame.dropna(subset=["student_id"])
    dates = pd.to_datetime(rows["date"], errors="raise").dt.date
    notes = rows["notes"] if "notes" in rows.columns else [None] * len(rows)

    observations = []
    for student_id, group_id, day, score, measure_type, note in zip(
        rows["student_id"], rows["group_id"], dates, rows["score"], rows["measure_type"], notes
    ):
        observations.append(
            Observation(
                student_id=str(student_id),
                group_id=str(group_id),
                date=day,
                score=float(score),
                measure_type=str(measure_type),
                notes=_optional_str(note),
            )
        )
    return observations


def goals_from_frame(frame: pd.DataFrame) -> List[GoalRecord]:
    """
    Build goal records; benchmark and target columns are optional and may hold nulls.

    A row without a goal score cannot be charted or projected and raises InvalidRecordError.
    """

    _require_columns(frame, GOAL_COLUMNS)
    goals = []
    for index, row in frame.iterrows():
        goal_score = _optional_float(row["goal_score"])
        if goal_score is None:
            raise InvalidRecordError(f"Goal row {index} for student {row['student_id']} has no goal score")
        goals.append(
            GoalRecord(
                student_id=str(row["student_id"]),
                group_id=str(row["group_id"]),
                measure_type=str(row["measure_type"]),
                goal_score=goal_score,
                benchmark_score=_optional_float(row.get("benchmark_score")),
                benchmark_date=_optional_date(row.get("benchmark_date")),
                goal_target_date=_optional_date(row.get("goal_target_date")),
                smart_goal_text=_optional_str(row.get("smart_goal_text")),
            )
        )
    return goals


def observations_to_frame(observations: List[Observation]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "student_id": obs.student_id,
                "group_id": obs.group_id,
                "date": obs.date,
                "score": obs.score,
                "measure_type": obs.measure_type,
            }
            for obs in observations
        ],
        columns=OBSERVATION_COLUMNS,
    )


def _require_columns(frame: pd.DataFrame, columns: List[str]) -> None:
    for col in columns:
        if col not in frame.columns:
            raise ValueError(f"Missing required column: {col}")


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _optional_date(value) -> Optional[date]:
    if value is None or pd.isna(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _optional_str(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None
