# ABOUTME: Holds tunable constants for trend, decision-rule, cadence, and chart computations.
# ABOUTME: Loads overrides from YAML config files such as configs/progress_monitoring.yaml.

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path("configs/progress_monitoring.yaml")


@dataclass(frozen=True)
class ChartConfig:
    """Plot-area size and axis settings; coordinates are relative to the plot area."""

    view_width: float = 800.0
    view_height: float = 400.0
    margin_top: float = 20.0
    margin_right: float = 30.0
    margin_bottom: float = 60.0
    margin_left: float = 60.0
    y_padding_ratio: float = 0.1
    min_y_padding: float = 5.0
    y_tick_count: int = 5

    def __post_init__(self) -> None:
        # Flat series rely on min_y_padding for a non-empty y-domain.
        if self.min_y_padding <= 0:
            raise ValueError(f"min_y_padding must be positive, got {self.min_y_padding}")
        if self.y_padding_ratio < 0:
            raise ValueError(f"y_padding_ratio must not be negative, got {self.y_padding_ratio}")

    @property
    def width(self) -> float:
        return self.view_width - self.margin_left - self.margin_right

    @property
    def height(self) -> float:
        return self.view_height - self.margin_top - self.margin_bottom


@dataclass(frozen=True)
class AnalyticsConfig:
    trend_threshold_per_week: float = 0.1
    decision_rule_points: int = 4
    # Tier 3 groups are monitored weekly, tier 2 bi-weekly.
    pm_frequency_days: Dict[int, int] = field(default_factory=lambda: {2: 14, 3: 7})
    default_pm_frequency_days: int = 7
    chart: ChartConfig = field(default_factory=ChartConfig)


def load_config(path: Optional[Path] = None) -> AnalyticsConfig:
    """
    Load analytics settings from YAML, falling back to defaults for missing keys.

    Passing no path uses configs/progress_monitoring.yaml when it exists.
    """

    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AnalyticsConfig()
        path = DEFAULT_CONFIG_PATH

    with open(path) as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"Config at {path} must be a mapping, got {type(cfg).__name__}")

    _reject_unknown_keys(cfg, AnalyticsConfig, str(path))
    chart_cfg = cfg.pop("chart", None) or {}
    _reject_unknown_keys(chart_cfg, ChartConfig, f"{path}:chart")

    if "pm_frequency_days" in cfg:
        cfg["pm_frequency_days"] = {int(tier): int(days) for tier, days in cfg["pm_frequency_days"].items()}

    return AnalyticsConfig(chart=ChartConfig(**chart_cfg), **cfg)


def _reject_unknown_keys(cfg: dict, schema: type, where: str) -> None:
    known = {f.name for f in fields(schema)}
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {where}: {', '.join(unknown)}")
