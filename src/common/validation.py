# ABOUTME: Validates observation and goal records before they reach the analytics engine.
# ABOUTME: Reports malformed input as ValidationResult objects or InvalidRecordError.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .schemas import GoalRecord, Observation

logger = logging.getLogger(__name__)

REVERSED_GOAL_DATES = "goal_target_before_benchmark"


class InvalidRecordError(ValueError):
    """Raised for genuinely malformed input such as non-finite scores or reversed goal dates."""


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if not self.is_valid:
            raise InvalidRecordError(", ".join(self.errors))


def validate_observation(observation: "Observation") -> ValidationResult:
    errors: List[str] = []

    if not observation.group_id or not str(observation.group_id).strip():
        errors.append("Group ID is required")
    if not observation.student_id or not str(observation.student_id).strip():
        errors.append("Student ID is required")
    if not isinstance(observation.date, date):
        errors.append("Date must be a calendar date")
    if not observation.measure_type or not observation.measure_type.strip():
        errors.append("Measure type is required")
    if not math.isfinite(observation.score):
        errors.append("Score must be a finite number")
    elif observation.score < 0:
        errors.append("Score must be a non-negative number")

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_goal_record(goal: "GoalRecord") -> ValidationResult:
    """
    Check a goal record for data-integrity problems.

    A goal target date that precedes the benchmark date is reported rather than
    swapped, since a negative duration would silently corrupt ROI arithmetic.
    """

    errors: List[str] = []

    if not goal.student_id or not str(goal.student_id).strip():
        errors.append("Student ID is required")
    if not goal.measure_type or not goal.measure_type.strip():
        errors.append("Measure type is required")
    if goal.goal_score is None or not math.isfinite(goal.goal_score):
        errors.append("Goal score must be a finite number")
    if goal.benchmark_score is not None and not math.isfinite(goal.benchmark_score):
        errors.append("Benchmark score must be a finite number")
    if goal.has_reversed_dates:
        errors.append(
            f"Goal target date {goal.goal_target_date} precedes benchmark date {goal.benchmark_date}"
        )
        logger.warning(
            "Goal for student %s (%s) has target date before benchmark date",
            goal.student_id,
            goal.measure_type,
        )

    return ValidationResult(is_valid=not errors, errors=errors)
