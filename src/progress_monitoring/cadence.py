# ABOUTME: Flags students whose progress-monitoring data is overdue for their intervention tier.
# ABOUTME: Tier 3 groups are monitored weekly and tier 2 groups bi-weekly.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from src.common.config import AnalyticsConfig
from src.common.schemas import Series


@dataclass(frozen=True)
class MonitoringReminder:
    student_id: str
    frequency_days: int
    frequency_label: str
    days_since_last: Optional[int]

    @property
    def message(self) -> str:
        if self.days_since_last is None:
            return f"PM data due for {self.student_id} ({self.frequency_label}) - no data recorded yet"
        return (
            f"PM data due for {self.student_id} ({self.frequency_label}) - "
            f"last recorded {self.days_since_last} days ago"
        )


def pm_frequency_days(tier: Optional[int], config: Optional[AnalyticsConfig] = None) -> int:
    config = config or AnalyticsConfig()
    if tier is None:
        return config.default_pm_frequency_days
    return config.pm_frequency_days.get(tier, config.default_pm_frequency_days)


def frequency_label(days: int) -> str:
    if days == 7:
        return "weekly"
    if days == 14:
        return "bi-weekly"
    return f"every {days} days"


def last_observation_dates(series_map: Mapping[str, Series]) -> Dict[str, date]:
    return {student_id: max(obs.date for obs in series) for student_id, series in series_map.items() if series}


def find_due_students(
    student_ids: Iterable[str],
    last_dates: Mapping[str, date],
    today: date,
    tiers: Optional[Mapping[str, int]] = None,
    config: Optional[AnalyticsConfig] = None,
) -> List[MonitoringReminder]:
    """
    List students whose newest data point is older than their tier's frequency.

    tiers maps student id to the intervention tier of the student's group;
    students without a tier use the default frequency.
    """

    tiers = tiers or {}
    reminders = []
    for student_id in student_ids:
        days = pm_frequency_days(tiers.get(student_id), config)
        label = frequency_label(days)
        last = last_dates.get(student_id)
        if last is None:
            reminders.append(MonitoringReminder(student_id, days, label, None))
            continue
        elapsed = (today - last).days
        if elapsed > days:
            reminders.append(MonitoringReminder(student_id, days, label, elapsed))
    return reminders
