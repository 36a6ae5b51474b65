# ABOUTME: Tests record validation and YAML configuration loading.
# ABOUTME: Ensures malformed records are reported distinctly and config overrides apply.

import math
from datetime import date
from pathlib import Path

import pytest

from conftest import make_goal

from src.common.config import AnalyticsConfig, ChartConfig, load_config
from src.common.schemas import GoalRecord, Observation
from src.common.validation import InvalidRecordError, validate_goal_record, validate_observation


def test_observation_rejects_non_finite_scores():
    with pytest.raises(InvalidRecordError):
        Observation("s1", "g1", date(2024, 1, 1), math.nan, "ORF")
    with pytest.raises(InvalidRecordError):
        Observation("s1", "g1", date(2024, 1, 1), math.inf, "ORF")
    with pytest.raises(InvalidRecordError):
        Observation("s1", "g1", date(2024, 1, 1), "42", "ORF")


def test_validate_observation_collects_errors():
    result = validate_observation(Observation("", "g1", date(2024, 1, 1), -3, " "))

    assert not result.is_valid
    assert "Student ID is required" in result.errors
    assert "Measure type is required" in result.errors
    assert "Score must be a non-negative number" in result.errors


def test_validate_observation_accepts_zero_score():
    assert validate_observation(Observation("s1", "g1", date(2024, 1, 1), 0, "ORF")).is_valid


def test_goal_record_rejects_non_finite_scores():
    with pytest.raises(InvalidRecordError):
        GoalRecord("s1", "g1", "ORF", math.nan)
    with pytest.raises(InvalidRecordError):
        GoalRecord("s1", "g1", "ORF", None)
    with pytest.raises(InvalidRecordError):
        GoalRecord("s1", "g1", "ORF", 50.0, benchmark_score=math.inf)


def test_validate_goal_record_reports_reversed_dates():
    result = validate_goal_record(make_goal(benchmark_day=70, target_day=0))

    assert not result.is_valid
    assert any("precedes benchmark date" in e for e in result.errors)
    with pytest.raises(InvalidRecordError):
        result.raise_for_errors()


def test_validate_goal_record_accepts_missing_dates():
    result = validate_goal_record(make_goal(benchmark_day=None, target_day=None))

    assert result.is_valid
    result.raise_for_errors()


def test_load_config_reads_repo_defaults():
    cfg = load_config(Path(__file__).resolve().parents[1] / "configs" / "progress_monitoring.yaml")

    assert cfg == AnalyticsConfig()


def test_load_config_applies_overrides(tmp_path):
    path = tmp_path / "pm.yaml"
    path.write_text(
        "decision_rule_points: 6\npm_frequency_days:\n  3: 5\nchart:\n  view_width: 1000\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.decision_rule_points == 6
    assert cfg.pm_frequency_days == {3: 5}
    assert cfg.chart.width == 1000 - 60 - 30
    assert cfg.trend_threshold_per_week == 0.1


def test_load_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "pm.yaml"
    path.write_text("decision_rule_point: 6\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_load_config_rejects_non_positive_min_padding(tmp_path):
    zero = tmp_path / "zero.yaml"
    zero.write_text("chart:\n  min_y_padding: 0\n", encoding="utf-8")
    negative = tmp_path / "negative.yaml"
    negative.write_text("chart:\n  min_y_padding: -2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="min_y_padding"):
        load_config(zero)
    with pytest.raises(ValueError, match="min_y_padding"):
        load_config(negative)


def test_chart_config_rejects_negative_padding_ratio():
    with pytest.raises(ValueError, match="y_padding_ratio"):
        ChartConfig(y_padding_ratio=-0.1)
