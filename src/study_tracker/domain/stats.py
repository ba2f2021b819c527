"""Domain models for progress statistics."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

from study_tracker.domain.entries import StudyCategory


class StatsPeriod(StrEnum):
    """Aggregation windows tracked in progress totals."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


def zero_totals() -> dict[StudyCategory, float]:
    """Return a totals mapping with every category set to zero."""
    return {category: 0.0 for category in StudyCategory}


@dataclass(frozen=True)
class ProgressTotals:
    """Per-category totals for the current week, month and all time."""

    weekly_totals: dict[StudyCategory, float]
    monthly_totals: dict[StudyCategory, float]
    all_time_totals: dict[StudyCategory, float]
    last_updated: datetime

    def for_period(self, period: StatsPeriod) -> dict[StudyCategory, float]:
        """Return the totals mapping for a period."""
        if period == StatsPeriod.WEEKLY:
            return self.weekly_totals
        if period == StatsPeriod.MONTHLY:
            return self.monthly_totals
        return self.all_time_totals


@dataclass(frozen=True)
class CategoryProgress:
    """Level and progress toward the next level for one category."""

    category: StudyCategory
    hours: float
    level: int
    progress_percent: float


@dataclass(frozen=True)
class DaySummary:
    """Hours logged on a single day, by category."""

    day: date
    totals: dict[StudyCategory, float] = field(default_factory=dict)

    @property
    def total_hours(self) -> float:
        return sum(self.totals.values())
