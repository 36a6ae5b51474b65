# ABOUTME: Makes the shared common package importable across the analytics modules.
# ABOUTME: Re-exports schema types, validation helpers, and configuration loading.

from .schemas import ChartGeometry, DecisionAlert, GoalRecord, Observation, Projection, TrendLine
from .validation import InvalidRecordError, ValidationResult, validate_goal_record, validate_observation
from .config import AnalyticsConfig, load_config

__all__ = [
    "ChartGeometry",
    "DecisionAlert",
    "GoalRecord",
    "Observation",
    "Projection",
    "TrendLine",
    "InvalidRecordError",
    "ValidationResult",
    "validate_goal_record",
    "validate_observation",
    "AnalyticsConfig",
    "load_config",
]
