# ABOUTME: Runs the full progress-monitoring analysis for one group and measure type.
# ABOUTME: Chains aggregation, trends, projections, decision rules, summaries, and chart geometry.

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from src.common.config import AnalyticsConfig
from src.common.schemas import ChartGeometry, DecisionAlert, GoalRecord, Observation, Projection, Series, TrendLine
from src.common.validation import ValidationResult, validate_goal_record

from .aggregation import build_series, match_goals, shared_date_axis
from .chart_geometry import build_chart_geometry
from .decision_rules import GOAL_LINE_RULE, evaluate_group
from .projection import project_goal
from .summary import ProgressSummary, summarize_series
from .trend import fit_group_trend, fit_trend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupAnalysis:
    measure_type: str
    fingerprint: str
    series: Dict[str, Series]
    date_axis: Tuple[date, ...]
    trends: Dict[str, Optional[TrendLine]]
    group_trend: Optional[TrendLine]
    projections: Dict[str, Projection]
    alerts: Dict[str, Optional[DecisionAlert]]
    summaries: Dict[str, ProgressSummary]
    geometry: ChartGeometry
    goal_issues: Dict[str, ValidationResult] = field(default_factory=dict)


def input_fingerprint(
    observations: Sequence[Observation],
    goals: Sequence[GoalRecord],
    measure_type: str,
    date_range: Optional[Tuple[Optional[date], Optional[date]]] = None,
) -> str:
    """
    Stable SHA-256 of the analysis inputs, for callers that memoize results.

    Input order is part of the key because same-day ties keep input order.
    """

    payload = {
        "measure_type": measure_type,
        "date_range": list(date_range) if date_range else None,
        "observations": [asdict(obs) for obs in observations],
        "goals": [asdict(goal) for goal in goals],
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def analyze_group(
    observations: Sequence[Observation],
    goals: Sequence[GoalRecord],
    measure_type: str,
    date_range: Optional[Tuple[Optional[date], Optional[date]]] = None,
    config: Optional[AnalyticsConfig] = None,
    rule: str = GOAL_LINE_RULE,
) -> GroupAnalysis:
    """
    Compute every analytics output for one measure type.

    Goals for other measure types are ignored; when a student has several goals
    for the measure, the last one supplied is used. Invalid goals are reported
    in goal_issues and left out of projections, alerts and the chart, except
    reversed-date goals, which are still projected with an issue flag.
    """

    config = config or AnalyticsConfig()
    goal_by_student: Dict[str, GoalRecord] = {}
    for goal in goals:
        if goal.measure_type == measure_type:
            goal_by_student[goal.student_id] = goal

    # Reversed dates are flagged but still projected; any other problem drops the goal.
    goal_issues = {}
    for student_id, goal in list(goal_by_student.items()):
        result = validate_goal_record(goal)
        if result.is_valid:
            continue
        goal_issues[student_id] = result
        if not (goal.has_reversed_dates and len(result.errors) == 1):
            logger.warning("Goal for student %s (%s) is invalid; excluding it", student_id, measure_type)
            del goal_by_student[student_id]
    measure_goals: List[GoalRecord] = list(goal_by_student.values())

    series_map = build_series(observations, measure_type, date_range=date_range)
    charted_goals = list(match_goals(series_map, measure_goals).values())
    date_axis = tuple(shared_date_axis(series_map, charted_goals))

    trends = {student_id: fit_trend(series) for student_id, series in series_map.items()}

    projections = {}
    summaries = {}
    for student_id, series in series_map.items():
        goal = goal_by_student.get(student_id)
        if goal is not None:
            projections[student_id] = project_goal(trends[student_id], series, goal)
        summaries[student_id] = summarize_series(
            series,
            trends[student_id],
            goal_score=goal.goal_score if goal is not None else None,
            threshold=config.trend_threshold_per_week,
        )

    alerts = evaluate_group(series_map, measure_goals, rule=rule, min_points=config.decision_rule_points)
    geometry = build_chart_geometry(series_map, date_axis, charted_goals, config.chart)

    return GroupAnalysis(
        measure_type=measure_type,
        fingerprint=input_fingerprint(observations, goals, measure_type, date_range),
        series=series_map,
        date_axis=date_axis,
        trends=trends,
        group_trend=fit_group_trend(series_map),
        projections=projections,
        alerts=alerts,
        summaries=summaries,
        geometry=geometry,
        goal_issues=goal_issues,
    )
