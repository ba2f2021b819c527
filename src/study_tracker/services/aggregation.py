"""Windowed per-category aggregation over study entries.

Every function here is pure: it takes the entry set and a reference day and
never touches storage, so it can run after each mutation.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta

from study_tracker.domain.entries import StudyCategory, StudyEntry
from study_tracker.domain.stats import (
    CategoryProgress,
    DaySummary,
    ProgressTotals,
    zero_totals,
)

DECEMBER = 12
HOURS_PER_LEVEL = 10
WEEK_VIEW_DAYS = 7


def start_of_week(day: date, week_start: int = 0) -> date:
    """Return the first day of the week containing ``day``.

    ``week_start`` follows ``date.weekday()``: 0 is Monday, 6 is Sunday.
    """
    offset = (day.weekday() - week_start) % 7
    return day - timedelta(days=offset)


def start_of_month(day: date) -> date:
    """Return the first day of the month containing ``day``."""
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    """Return the last day of the month containing ``day``."""
    start = start_of_month(day)
    if start.month == DECEMBER:
        following = start.replace(year=start.year + 1, month=1)
    else:
        following = start.replace(month=start.month + 1)
    return following - timedelta(days=1)


def compute_totals(
    entries: Iterable[StudyEntry], now: date | datetime, week_start: int = 0
) -> ProgressTotals:
    """Return weekly, monthly and all-time totals per category.

    Window boundaries compare dates only; entries dated after ``now`` count
    toward all-time totals but not toward the current week or month.
    """
    today = _as_day(now)
    week_begin = start_of_week(today, week_start)
    month_begin = start_of_month(today)

    weekly = zero_totals()
    monthly = zero_totals()
    all_time = zero_totals()
    for entry in sorted(entries, key=lambda item: item.date):
        in_week = week_begin <= entry.date <= today
        in_month = month_begin <= entry.date <= today
        for record in entry.hour_records:
            all_time[record.category] += record.hours
            if in_week:
                weekly[record.category] += record.hours
            if in_month:
                monthly[record.category] += record.hours

    return ProgressTotals(
        weekly_totals=weekly,
        monthly_totals=monthly,
        all_time_totals=all_time,
        last_updated=_as_instant(now),
    )


def daily_totals(entry: StudyEntry) -> dict[StudyCategory, float]:
    """Return one entry's hours by category, omitting empty categories."""
    totals: dict[StudyCategory, float] = {}
    for category in StudyCategory:
        hours = sum(
            record.hours for record in entry.hour_records if record.category == category
        )
        if hours > 0:
            totals[category] = hours
    return totals


def category_progress(category: StudyCategory, hours: float) -> CategoryProgress:
    """Return the level reached for ``hours`` and progress toward the next one."""
    level = int(hours // HOURS_PER_LEVEL) + 1
    progress = (hours % HOURS_PER_LEVEL) * (100 / HOURS_PER_LEVEL)
    return CategoryProgress(
        category=category,
        hours=hours,
        level=level,
        progress_percent=progress,
    )


def last_seven_days(entries: Iterable[StudyEntry], today: date) -> list[DaySummary]:
    """Return one summary per day for the seven days ending ``today``."""
    start = today - timedelta(days=WEEK_VIEW_DAYS - 1)
    return _summarize_range(entries, start, today)


def month_calendar(entries: Iterable[StudyEntry], anchor: date) -> list[DaySummary]:
    """Return one summary per day of the month containing ``anchor``."""
    return _summarize_range(entries, start_of_month(anchor), end_of_month(anchor))


def _summarize_range(
    entries: Iterable[StudyEntry], start: date, end: date
) -> list[DaySummary]:
    by_day = {entry.date: entry for entry in entries if start <= entry.date <= end}
    summaries = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        entry = by_day.get(day)
        summaries.append(
            DaySummary(day=day, totals=daily_totals(entry) if entry else {})
        )
    return summaries


def _as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_instant(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=UTC)
