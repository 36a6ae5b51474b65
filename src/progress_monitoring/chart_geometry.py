# ABOUTME: Synthesizes chart geometry for multi-student progress-monitoring charts.
# ABOUTME: Produces shared scales, axis ticks, scaled series paths, goal lines, and aimlines.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from src.common.config import ChartConfig
from src.common.schemas import (
    AxisTick,
    ChartGeometry,
    GoalMarkerSpec,
    GoalRecord,
    PathSpec,
    Segment,
    Series,
)

from .aggregation import match_goals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointScale:
    """Maps axis positions (date indexes) evenly across [0, width]."""

    count: int
    width: float

    def __call__(self, index: int) -> float:
        return index / max(1, self.count - 1) * self.width


@dataclass(frozen=True)
class LinearScale:
    """Maps scores onto screen y, with the domain minimum at the bottom (y = height)."""

    lower: float
    upper: float
    height: float

    def __call__(self, value: float) -> float:
        return self.height - (value - self.lower) / (self.upper - self.lower) * self.height


def y_domain_for(
    series_map: Mapping[str, Series],
    goals: Iterable[GoalRecord],
    padding_ratio: float = 0.1,
    min_padding: float = 5.0,
) -> Optional[Tuple[float, float]]:
    """
    Score domain covering every observation, benchmark score, and goal score.

    The range is padded by padding_ratio of its span (min_padding when the span is
    zero) and rounded outward to whole units. The lower bound stays at or above
    zero when every value is non-negative.
    """

    values = [obs.score for series in series_map.values() for obs in series]
    if not values:
        return None
    for goal in goals:
        if goal.benchmark_score is not None:
            values.append(goal.benchmark_score)
        values.append(goal.goal_score)

    low = min(values)
    high = max(values)
    padding = (high - low) * padding_ratio or min_padding
    lower = math.floor(low - padding)
    upper = math.ceil(high + padding)
    if low >= 0:
        lower = max(0, lower)
    return float(lower), float(upper)


def y_ticks_for(y_domain: Tuple[float, float], scale: LinearScale, tick_count: int = 5) -> Tuple[AxisTick, ...]:
    lower, upper = y_domain
    if tick_count < 2:
        return (AxisTick(value=lower, position=scale(lower), label=_format_score(lower)),)
    step = math.ceil((upper - lower) / (tick_count - 1))
    ticks = []
    for i in range(tick_count):
        value = lower + step * i
        if value > upper:
            break
        ticks.append(AxisTick(value=value, position=scale(value), label=_format_score(value)))
    return tuple(ticks)


def x_ticks_for(date_axis: Sequence[date], scale: PointScale) -> Tuple[AxisTick, ...]:
    return tuple(
        AxisTick(value=day, position=scale(i), label=format_axis_date(day)) for i, day in enumerate(date_axis)
    )


def format_axis_date(day: date) -> str:
    return f"{day:%b} {day.day}"


def build_chart_geometry(
    series_map: Mapping[str, Series],
    date_axis: Sequence[date],
    goals: Iterable[GoalRecord] = (),
    config: Optional[ChartConfig] = None,
) -> ChartGeometry:
    """
    Build the full chart description for one or more series on a shared axis.

    Only goals belonging to charted students, for the measure each series
    records, widen the y-domain or produce markers. Every observation date
    must be present in date_axis.
    """

    config = config or ChartConfig()
    width, height = config.width, config.height

    if not series_map:
        return ChartGeometry(width=width, height=height)

    goals = list(goals)
    for goal in goals:
        if goal.student_id not in series_map:
            logger.warning("Goal for student %s has no series on this chart; skipping marker", goal.student_id)
    goal_by_student = match_goals(series_map, goals)

    axis = tuple(sorted(set(date_axis)))
    index_of = {day: i for i, day in enumerate(axis)}
    _require_on_axis(series_map, goal_by_student.values(), index_of)

    y_domain = y_domain_for(
        series_map,
        goal_by_student.values(),
        padding_ratio=config.y_padding_ratio,
        min_padding=config.min_y_padding,
    )
    x_scale = PointScale(count=len(axis), width=width)
    y_scale = LinearScale(lower=y_domain[0], upper=y_domain[1], height=height)

    series_paths = {
        student_id: PathSpec(
            student_id=student_id,
            points=tuple((x_scale(index_of[obs.date]), y_scale(obs.score)) for obs in series),
        )
        for student_id, series in series_map.items()
    }

    goal_markers = {
        student_id: _goal_marker(goal, index_of, x_scale, y_scale)
        for student_id, goal in goal_by_student.items()
    }

    return ChartGeometry(
        width=width,
        height=height,
        x_domain=axis,
        y_domain=y_domain,
        series_paths=series_paths,
        goal_markers=goal_markers,
        x_ticks=x_ticks_for(axis, x_scale),
        y_ticks=y_ticks_for(y_domain, y_scale, config.y_tick_count),
    )


def iter_coordinates(geometry: ChartGeometry) -> List[Tuple[float, float]]:
    """Every scaled coordinate referenced by paths and goal markers."""

    coords: List[Tuple[float, float]] = []
    for path in geometry.series_paths.values():
        coords.extend(path.points)
    for marker in geometry.goal_markers.values():
        coords.extend([marker.goal_line.start, marker.goal_line.end])
        if marker.benchmark_point is not None:
            coords.append(marker.benchmark_point)
        if marker.aimline is not None:
            coords.extend([marker.aimline.start, marker.aimline.end])
    return coords


def _goal_marker(
    goal: GoalRecord,
    index_of: Mapping[date, int],
    x_scale: PointScale,
    y_scale: LinearScale,
) -> GoalMarkerSpec:
    goal_y = y_scale(goal.goal_score)
    line_start_x = x_scale(index_of[goal.benchmark_date]) if goal.benchmark_date is not None else 0.0
    line_end_x = x_scale(index_of[goal.goal_target_date]) if goal.goal_target_date is not None else x_scale.width

    benchmark_point = None
    if goal.benchmark_score is not None and goal.benchmark_date is not None:
        benchmark_point = (x_scale(index_of[goal.benchmark_date]), y_scale(goal.benchmark_score))

    aimline = None
    if benchmark_point is not None and goal.goal_target_date is not None and not goal.has_reversed_dates:
        aimline = Segment(start=benchmark_point, end=(line_end_x, goal_y))

    return GoalMarkerSpec(
        student_id=goal.student_id,
        goal_score=goal.goal_score,
        goal_line=Segment(start=(line_start_x, goal_y), end=(line_end_x, goal_y)),
        benchmark_point=benchmark_point,
        aimline=aimline,
    )


def _require_on_axis(
    series_map: Mapping[str, Series],
    goals: Iterable[GoalRecord],
    index_of: Mapping[date, int],
) -> None:
    missing = {obs.date for series in series_map.values() for obs in series if obs.date not in index_of}
    for goal in goals:
        for day in (goal.benchmark_date, goal.goal_target_date):
            if day is not None and day not in index_of:
                missing.add(day)
    if missing:
        first = min(missing)
        raise ValueError(f"Date axis is missing {len(missing)} date(s), first missing: {first.isoformat()}")


def _format_score(value: float) -> str:
    return f"{value:g}"
