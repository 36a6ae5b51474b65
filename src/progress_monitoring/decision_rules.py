# ABOUTME: Applies curriculum-based-measurement decision rules to progress-monitoring series.
# ABOUTME: Detects sustained runs above/below the goal line or aimline and attaches advisory guidance.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.common.schemas import AlertKind, DecisionAlert, GoalRecord, Series

from .aggregation import match_goals
from .projection import weeks_between

DECISION_RULE_POINTS = 4
GOAL_LINE_RULE = "goal_line"
AIMLINE_RULE = "aimline"


@dataclass(frozen=True)
class AlertGuidance:
    message: str
    suggestion: str
    actions: Tuple[str, ...]


_GUIDANCE = {
    AlertKind.BELOW_GOAL: AlertGuidance(
        message="{points} consecutive points below goal",
        suggestion="Consider adjusting the intervention intensity or approach using Data-Based Individualization (DBI).",
        actions=(
            "Review intervention fidelity checklist",
            "Analyze error patterns for targeted instruction",
            "Consider increasing session duration or frequency",
            "Evaluate need for prerequisite skill instruction",
        ),
    ),
    AlertKind.ABOVE_GOAL: AlertGuidance(
        message="{points} consecutive points above goal",
        suggestion="Student is exceeding expectations. Consider raising the goal or advancing in curriculum.",
        actions=(
            "Set a more ambitious goal",
            "Advance to next curriculum position",
            "Add complexity to practice items",
            "Consider reducing intervention intensity",
        ),
    ),
    AlertKind.VARIABLE: AlertGuidance(
        message="Variable performance",
        suggestion="Continue monitoring progress. Maintain current intervention approach.",
        actions=(
            "Ensure consistent intervention delivery",
            "Monitor for patterns in performance variability",
            "Document any environmental or health factors",
        ),
    ),
}


def alert_guidance(alert: DecisionAlert) -> AlertGuidance:
    """Advisory text for an alert; never a directive to change the goal automatically."""

    template = _GUIDANCE[alert.kind]
    return AlertGuidance(
        message=template.message.format(points=alert.run_length),
        suggestion=template.suggestion,
        actions=template.actions,
    )


def evaluate_decision_rule(
    series: Series,
    goal_line: float,
    min_points: int = DECISION_RULE_POINTS,
) -> Optional[DecisionAlert]:
    """
    Evaluate the most recent run of points strictly above or below a flat goal line.

    Returns None when the series has fewer than min_points observations, which
    callers render as "insufficient data" rather than as a variable result.
    """

    targets = [goal_line] * len(series)
    return _evaluate(series, targets, min_points, GOAL_LINE_RULE)


def evaluate_aimline_rule(
    series: Series,
    goal: GoalRecord,
    min_points: int = DECISION_RULE_POINTS,
) -> Optional[DecisionAlert]:
    """
    Evaluate runs against the aimline from the benchmark point to the goal point.

    Goals without a usable benchmark/target pair fall back to the flat goal line.
    """

    if not _has_aimline(goal):
        return evaluate_decision_rule(series, goal.goal_score, min_points)
    targets = [aimline_value(goal, obs.date) for obs in series]
    return _evaluate(series, targets, min_points, AIMLINE_RULE)


def aimline_value(goal: GoalRecord, on_date: date) -> float:
    """Score the aimline expects on a date, extrapolated past either end."""

    total = weeks_between(goal.benchmark_date, goal.goal_target_date)
    rate = (goal.goal_score - goal.benchmark_score) / total
    return goal.benchmark_score + rate * weeks_between(goal.benchmark_date, on_date)


def evaluate_group(
    series_map: Mapping[str, Series],
    goals: Iterable[GoalRecord],
    rule: str = GOAL_LINE_RULE,
    min_points: int = DECISION_RULE_POINTS,
) -> Dict[str, Optional[DecisionAlert]]:
    """Evaluate every student that has a goal for the series' measure; students without one are omitted."""

    if rule not in (GOAL_LINE_RULE, AIMLINE_RULE):
        raise ValueError(f"Unsupported decision rule '{rule}'. Expected one of: {GOAL_LINE_RULE}, {AIMLINE_RULE}.")

    goal_by_student = match_goals(series_map, goals)
    results: Dict[str, Optional[DecisionAlert]] = {}
    for student_id, series in series_map.items():
        goal = goal_by_student.get(student_id)
        if goal is None:
            continue
        if rule == AIMLINE_RULE:
            results[student_id] = evaluate_aimline_rule(series, goal, min_points)
        else:
            results[student_id] = evaluate_decision_rule(series, goal.goal_score, min_points)
    return results


def _evaluate(series: Series, targets: Sequence[float], min_points: int, rule: str) -> Optional[DecisionAlert]:
    if min_points < 1:
        raise ValueError(f"min_points must be at least 1, got {min_points}")
    if len(series) < min_points:
        return None

    sides = [_side(obs.score, target) for obs, target in zip(series, targets)]
    run_side, run_start = _trailing_run(sides)
    run_length = len(sides) - run_start if run_side != 0 else 0

    if run_length >= min_points:
        kind = AlertKind.ABOVE_GOAL if run_side > 0 else AlertKind.BELOW_GOAL
        return DecisionAlert(
            kind=kind,
            run_length=run_length,
            triggered_at_date=series[run_start + min_points - 1].date,
            rule=rule,
        )

    return DecisionAlert(
        kind=AlertKind.VARIABLE,
        run_length=0,
        triggered_at_date=series[-1].date,
        rule=rule,
    )


def _side(score: float, target: float) -> int:
    if score > target:
        return 1
    if score < target:
        return -1
    return 0


def _trailing_run(sides: List[int]) -> Tuple[int, int]:
    """Side of the last point and the index where its unbroken run starts."""

    last = sides[-1]
    start = len(sides) - 1
    while start > 0 and sides[start - 1] == last:
        start -= 1
    return last, start


def _has_aimline(goal: GoalRecord) -> bool:
    return (
        goal.benchmark_score is not None
        and goal.benchmark_date is not None
        and goal.goal_target_date is not None
        and goal.goal_target_date > goal.benchmark_date
    )
