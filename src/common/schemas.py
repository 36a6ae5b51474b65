# ABOUTME: Defines canonical data structures shared by the progress-monitoring engine.
# ABOUTME: Centralizes observation, goal, trend, projection, alert, and chart geometry records.

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple

from .validation import InvalidRecordError


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    FLAT = "flat"
    DECLINING = "declining"


class AlertKind(str, Enum):
    ABOVE_GOAL = "aboveGoal"
    BELOW_GOAL = "belowGoal"
    VARIABLE = "variable"


@dataclass(frozen=True)
class Observation:
    """One dated progress-monitoring score for one student on one measure."""

    student_id: str
    group_id: str
    date: date
    score: float
    measure_type: str
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.score, numbers.Real) or isinstance(self.score, bool):
            raise InvalidRecordError(f"Score for student {self.student_id} must be numeric, got {self.score!r}")
        if not math.isfinite(self.score):
            raise InvalidRecordError(f"Score for student {self.student_id} on {self.date} is not finite")


@dataclass(frozen=True)
class GoalRecord:
    """Target line for one student on one measure type."""

    student_id: str
    group_id: str
    measure_type: str
    goal_score: float
    benchmark_score: Optional[float] = None
    benchmark_date: Optional[date] = None
    goal_target_date: Optional[date] = None
    smart_goal_text: Optional[str] = None

    def __post_init__(self) -> None:
        _require_finite_score(self.goal_score, f"Goal score for student {self.student_id}")
        if self.benchmark_score is not None:
            _require_finite_score(self.benchmark_score, f"Benchmark score for student {self.student_id}")

    @property
    def has_reversed_dates(self) -> bool:
        if self.benchmark_date is None or self.goal_target_date is None:
            return False
        return self.goal_target_date < self.benchmark_date


Series = Tuple[Observation, ...]


def _require_finite_score(value, label: str) -> None:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        raise InvalidRecordError(f"{label} must be numeric, got {value!r}")
    if not math.isfinite(value):
        raise InvalidRecordError(f"{label} is not finite")


@dataclass(frozen=True)
class TrendLine:
    """
    Least-squares line through a series.

    slope is in score units per day; intercept is the fitted score at origin,
    the first date of the fitted series.
    """

    slope: float
    intercept: float
    point_count: int
    origin: date

    @property
    def weekly_slope(self) -> float:
        return self.slope * 7

    def predict(self, on_date: date) -> float:
        return self.intercept + self.slope * (on_date - self.origin).days


@dataclass(frozen=True)
class Projection:
    """Goal-attainment arithmetic for one student. None means "not enough information"."""

    weeks_to_goal: Optional[int] = None
    actual_roi: Optional[float] = None
    expected_roi: Optional[float] = None
    on_track: Optional[bool] = None
    current_score: Optional[float] = None
    issues: Tuple[str, ...] = ()

    def rounded(self) -> Dict[str, Optional[float]]:
        """Display values rounded to two decimals."""

        def _round(value: Optional[float]) -> Optional[float]:
            return None if value is None else round(value, 2)

        return {
            "weeks_to_goal": self.weeks_to_goal,
            "actual_roi": _round(self.actual_roi),
            "expected_roi": _round(self.expected_roi),
            "on_track": self.on_track,
            "current_score": _round(self.current_score),
        }


@dataclass(frozen=True)
class DecisionAlert:
    kind: AlertKind
    run_length: int
    triggered_at_date: date
    rule: str = "goal_line"


@dataclass(frozen=True)
class PathSpec:
    """Scaled polyline for one student's series, in series order."""

    student_id: str
    points: Tuple[Tuple[float, float], ...]

    def to_svg(self) -> str:
        if not self.points:
            return ""
        head, *rest = self.points
        parts = [f"M {head[0]:g} {head[1]:g}"]
        parts.extend(f"L {x:g} {y:g}" for x, y in rest)
        return " ".join(parts)


@dataclass(frozen=True)
class Segment:
    start: Tuple[float, float]
    end: Tuple[float, float]


@dataclass(frozen=True)
class GoalMarkerSpec:
    student_id: str
    goal_score: float
    goal_line: Segment
    benchmark_point: Optional[Tuple[float, float]] = None
    aimline: Optional[Segment] = None


@dataclass(frozen=True)
class AxisTick:
    value: object
    position: float
    label: str


@dataclass(frozen=True)
class ChartGeometry:
    """Scaled chart description consumed by the rendering layer."""

    width: float
    height: float
    x_domain: Tuple[date, ...] = ()
    y_domain: Optional[Tuple[float, float]] = None
    series_paths: Dict[str, PathSpec] = field(default_factory=dict)
    goal_markers: Dict[str, GoalMarkerSpec] = field(default_factory=dict)
    x_ticks: Tuple[AxisTick, ...] = ()
    y_ticks: Tuple[AxisTick, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.series_paths
