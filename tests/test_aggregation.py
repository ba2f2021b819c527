"""Tests for windowed aggregation."""

from datetime import UTC, date, datetime
from uuid import uuid4

from study_tracker.domain.entries import StudyCategory, StudyEntry, StudyHourRecord
from study_tracker.domain.stats import StatsPeriod
from study_tracker.services.aggregation import (
    category_progress,
    compute_totals,
    end_of_month,
    last_seven_days,
    month_calendar,
    start_of_week,
)

P = StudyCategory.PRODUCTIVE
C = StudyCategory.CREATIVE
L = StudyCategory.LEARNING


def _entry(day: date, *records: tuple[StudyCategory, float]) -> StudyEntry:
    return StudyEntry(
        id=uuid4(),
        date=day,
        hour_records=tuple(StudyHourRecord(cat, hours) for cat, hours in records),
    )


def test_weekly_counts_only_current_week() -> None:
    entries = [
        _entry(date(2024, 1, 1), (P, 3)),
        _entry(date(2024, 1, 8), (P, 2)),
    ]

    totals = compute_totals(entries, date(2024, 1, 8))

    assert totals.weekly_totals[P] == 2
    assert totals.monthly_totals[P] == 5
    assert totals.all_time_totals[P] == 5


def test_zero_categories_are_reported() -> None:
    totals = compute_totals([_entry(date(2024, 1, 8), (P, 1))], date(2024, 1, 8))

    assert totals.weekly_totals == {P: 1.0, C: 0.0, L: 0.0}
    assert totals.all_time_totals[L] == 0.0


def test_empty_entry_set_yields_zero_totals() -> None:
    totals = compute_totals([], date(2024, 1, 8))

    for period in StatsPeriod:
        mapping = totals.for_period(period)
        assert set(mapping) == set(StudyCategory)
        assert all(value == 0.0 for value in mapping.values())


def test_month_window_excludes_previous_month() -> None:
    entries = [
        _entry(date(2023, 12, 31), (C, 4)),
        _entry(date(2024, 1, 2), (C, 1.5), (C, 0.5), (L, 2)),
    ]

    totals = compute_totals(entries, date(2024, 1, 2))

    assert totals.monthly_totals[C] == 2
    assert totals.monthly_totals[L] == 2
    # 2024-01-01 is a Monday, so 2023-12-31 belongs to the previous week.
    assert totals.weekly_totals[C] == 2
    assert totals.all_time_totals[C] == 6


def test_future_entries_only_count_all_time() -> None:
    entries = [_entry(date(2024, 1, 9), (P, 1))]

    totals = compute_totals(entries, date(2024, 1, 8))

    assert totals.weekly_totals[P] == 0
    assert totals.monthly_totals[P] == 0
    assert totals.all_time_totals[P] == 1


def test_datetime_now_is_truncated_to_day() -> None:
    now = datetime(2024, 1, 8, 23, 59, tzinfo=UTC)
    entries = [_entry(date(2024, 1, 8), (P, 1))]

    totals = compute_totals(entries, now)

    assert totals.weekly_totals[P] == 1
    assert totals.last_updated == now


def test_week_start_is_configurable() -> None:
    # 2024-01-07 is a Sunday.
    entries = [_entry(date(2024, 1, 7), (L, 2))]

    monday_start = compute_totals(entries, date(2024, 1, 8), week_start=0)
    sunday_start = compute_totals(entries, date(2024, 1, 8), week_start=6)

    assert monday_start.weekly_totals[L] == 0
    assert sunday_start.weekly_totals[L] == 2


def test_result_does_not_depend_on_input_order() -> None:
    entries = [
        _entry(date(2024, 1, 3), (P, 0.1), (C, 0.2)),
        _entry(date(2024, 1, 1), (P, 0.2)),
        _entry(date(2024, 1, 2), (P, 0.3)),
    ]

    forward = compute_totals(entries, date(2024, 1, 3))
    backward = compute_totals(list(reversed(entries)), date(2024, 1, 3))

    assert forward == backward


def test_start_of_week_and_end_of_month() -> None:
    assert start_of_week(date(2024, 1, 10)) == date(2024, 1, 8)
    assert start_of_week(date(2024, 1, 8)) == date(2024, 1, 8)
    assert start_of_week(date(2024, 1, 10), week_start=6) == date(2024, 1, 7)
    assert end_of_month(date(2024, 2, 10)) == date(2024, 2, 29)
    assert end_of_month(date(2024, 12, 5)) == date(2024, 12, 31)


def test_category_progress_levels() -> None:
    assert category_progress(P, 0) == category_progress(P, 0.0)
    progress = category_progress(P, 23)

    assert progress.level == 3
    assert progress.progress_percent == 30
    assert category_progress(C, 0).level == 1
    assert category_progress(C, 10).level == 2
    assert category_progress(C, 10).progress_percent == 0


def test_last_seven_days_summaries() -> None:
    entries = [
        _entry(date(2024, 1, 10), (P, 1), (P, 2), (C, 1)),
        _entry(date(2024, 1, 3), (L, 5)),
    ]

    days = last_seven_days(entries, date(2024, 1, 10))

    assert [day.day for day in days][0] == date(2024, 1, 4)
    assert days[-1].day == date(2024, 1, 10)
    assert days[-1].totals == {P: 3, C: 1}
    assert days[-1].total_hours == 4
    assert all(day.totals == {} for day in days[:-1])


def test_month_calendar_covers_whole_month() -> None:
    entries = [_entry(date(2024, 2, 29), (L, 1.5))]

    days = month_calendar(entries, date(2024, 2, 14))

    assert len(days) == 29
    assert days[0].day == date(2024, 2, 1)
    assert days[-1].totals == {L: 1.5}
