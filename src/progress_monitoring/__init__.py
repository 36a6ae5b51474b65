# ABOUTME: Exposes the progress-monitoring analytics engine entrypoints.
# ABOUTME: Groups aggregation, trend fitting, goal projection, decision rules, and chart geometry.

from .aggregation import build_series, shared_date_axis
from .chart_geometry import build_chart_geometry
from .decision_rules import evaluate_decision_rule
from .pipeline import analyze_group, input_fingerprint
from .projection import project_goal
from .trend import classify_trend, fit_trend

__all__ = [
    "build_series",
    "shared_date_axis",
    "fit_trend",
    "classify_trend",
    "project_goal",
    "evaluate_decision_rule",
    "build_chart_geometry",
    "analyze_group",
    "input_fingerprint",
]
