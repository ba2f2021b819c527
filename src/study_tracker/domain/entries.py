"""Domain models for study entries."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from study_tracker.domain.errors import InvalidInput


class StudyCategory(StrEnum):
    """Stable category identifiers used in storage and on the wire."""

    PRODUCTIVE = "productive"
    CREATIVE = "creative"
    LEARNING = "learning"


@dataclass(frozen=True)
class StudyHourRecord:
    """A single submitted observation of study hours."""

    category: StudyCategory
    hours: float

    def __post_init__(self) -> None:
        if isinstance(self.hours, bool) or not isinstance(self.hours, int | float):
            raise InvalidInput(f"hours must be a number, got {self.hours!r}")
        if not math.isfinite(self.hours) or self.hours <= 0:
            raise InvalidInput(f"hours must be positive, got {self.hours!r}")


@dataclass(frozen=True)
class StudyEntry:
    """All hour records logged for one calendar date, in insertion order."""

    id: UUID
    date: date
    hour_records: tuple[StudyHourRecord, ...]
    updated_at: datetime | None = None

    @property
    def total_hours(self) -> float:
        """Return the sum of every hour record in this entry."""
        return sum(record.hours for record in self.hour_records)


def parse_category(value: object) -> StudyCategory:
    """Return the category for a stable identifier."""
    if isinstance(value, StudyCategory):
        return value
    try:
        return StudyCategory(str(value))
    except ValueError:
        raise InvalidInput(f"Unknown study category: {value!r}") from None


def parse_study_date(value: object) -> date:
    """Return a calendar date from a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidInput(f"Malformed study date: {value!r}")
