"""Study entry write path: merging, deleting and resetting hour records."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from study_tracker.domain.entries import (
    StudyEntry,
    StudyHourRecord,
    parse_category,
    parse_study_date,
)
from study_tracker.domain.errors import (
    InvalidInput,
    NotFound,
    ResetFailure,
    StoreUnavailable,
)
from study_tracker.domain.stats import ProgressTotals

if TYPE_CHECKING:
    from study_tracker.services.notifier import ChangeNotifier
    from study_tracker.services.stats import StatsService

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for per-date study entries."""

    def create(self, day: date, record: StudyHourRecord) -> UUID:
        """Create an entry for a date holding one record and return its id."""

    def append(self, entry_id: UUID, record: StudyHourRecord) -> None:
        """Append a record to an existing entry."""

    def remove_hour_at(self, entry_id: UUID, index: int) -> bool:
        """Remove the record at ``index``; return True if the entry was deleted."""

    def get(self, entry_id: UUID) -> StudyEntry | None:
        """Return an entry by id."""

    def list_all(self) -> list[StudyEntry]:
        """Return every entry ordered by date."""

    def find_by_date(self, day: date) -> StudyEntry | None:
        """Return the entry for a date, if any."""

    def clear_all(self) -> None:
        """Delete every entry in a single all-or-nothing operation."""


@dataclass
class StudyEntryService:
    """Sole write path for study hour observations.

    Writes for the same date are serialized by a per-date lock; each successful
    mutation refreshes cached totals and notifies observers.
    """

    repository: EntryRepository
    stats_service: StatsService
    notifier: ChangeNotifier
    _date_locks: dict[date, asyncio.Lock] = field(default_factory=dict)
    _date_lock_users: Counter[date] = field(default_factory=Counter)
    _reset_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def record_hours(self, day: object, category: object, hours: object) -> UUID:
        """Append an hour record to the entry for ``day``, creating it if needed."""
        study_date = parse_study_date(day)
        record = StudyHourRecord(category=parse_category(category), hours=_hours(hours))
        async with self._date_lock(study_date):
            existing = await asyncio.to_thread(
                self.repository.find_by_date, study_date
            )
            if existing is not None:
                await asyncio.to_thread(self.repository.append, existing.id, record)
                entry_id = existing.id
            else:
                entry_id = await asyncio.to_thread(
                    self.repository.create, study_date, record
                )
        _logger.info(
            "Recorded study hours: date=%s category=%s hours=%s entry=%s",
            study_date.isoformat(),
            record.category.value,
            record.hours,
            entry_id,
        )
        await self.refresh()
        return entry_id

    async def delete_hour(self, entry_id: UUID, index: int) -> bool:
        """Remove one hour record; a missing target is treated as already deleted.

        Returns True when a record was removed.
        """
        entry = await asyncio.to_thread(self.repository.get, entry_id)
        if entry is None:
            _logger.info("Delete skipped, entry not found: entry=%s", entry_id)
            return False
        async with self._date_lock(entry.date):
            try:
                entry_deleted = await asyncio.to_thread(
                    self.repository.remove_hour_at, entry_id, index
                )
            except NotFound:
                _logger.info(
                    "Delete skipped, hour record not found: entry=%s index=%s",
                    entry_id,
                    index,
                )
                return False
        _logger.info(
            "Deleted study hour: entry=%s index=%s entry_deleted=%s",
            entry_id,
            index,
            entry_deleted,
        )
        await self.refresh()
        return True

    async def list_entries(self, day: object | None = None) -> list[StudyEntry]:
        """Return all entries, or only the entry for ``day`` when given."""
        if day is None:
            return await asyncio.to_thread(self.repository.list_all)
        entry = await asyncio.to_thread(
            self.repository.find_by_date, parse_study_date(day)
        )
        return [entry] if entry else []

    async def get_entry(self, day: object) -> StudyEntry:
        """Return the entry for ``day``; raise NotFound when absent."""
        study_date = parse_study_date(day)
        entry = await asyncio.to_thread(self.repository.find_by_date, study_date)
        if entry is None:
            raise NotFound(f"No study entry for {study_date.isoformat()}")
        return entry

    async def reset(self) -> ProgressTotals | None:
        """Delete every entry and the cached totals, returning zeroed totals."""
        async with self._reset_lock:
            await asyncio.to_thread(self.repository.clear_all)
            try:
                remaining = await asyncio.to_thread(self.repository.list_all)
            except StoreUnavailable as exc:
                raise ResetFailure(
                    "Reset committed but could not be verified; state is unverified"
                ) from exc
            if remaining:
                raise ResetFailure(
                    f"Reset left {len(remaining)} entries behind; state is unverified"
                )
            try:
                await asyncio.to_thread(self.stats_service.cache.invalidate)
            except StoreUnavailable as exc:
                raise ResetFailure(
                    "Entries cleared but cached totals could not be removed; "
                    "state is unverified"
                ) from exc
            _logger.warning("Factory reset completed")
            self.notifier.publish_entries([])
            self.notifier.publish_totals(None)
            return await self.refresh()

    async def refresh(self) -> ProgressTotals | None:
        """Recompute totals from the store, write them through and notify."""
        async with self.stats_service.refresh_lock:
            try:
                entries = await asyncio.to_thread(self.repository.list_all)
                totals = await self.stats_service.refresh(entries)
            except StoreUnavailable as exc:
                _logger.exception("Failed to refresh progress totals")
                self.notifier.publish_error(exc)
                return None
            self.notifier.publish_entries(entries)
            self.notifier.publish_totals(totals)
            return totals

    @asynccontextmanager
    async def _date_lock(self, day: date) -> AsyncIterator[None]:
        """Hold the lock for ``day``, dropping it once nobody holds or awaits it."""
        lock = self._date_locks.setdefault(day, asyncio.Lock())
        self._date_lock_users[day] += 1
        try:
            async with lock:
                yield
        finally:
            self._date_lock_users[day] -= 1
            if not self._date_lock_users[day]:
                del self._date_lock_users[day]
                del self._date_locks[day]


def _hours(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise InvalidInput(f"hours must be a number, got {value!r}")
    try:
        return float(value)
    except ValueError:
        raise InvalidInput(f"hours must be a number, got {value!r}") from None
