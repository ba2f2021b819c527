"""Statistics service for study progress."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo

from study_tracker.domain.entries import StudyCategory, StudyEntry
from study_tracker.domain.stats import (
    CategoryProgress,
    DaySummary,
    ProgressTotals,
    StatsPeriod,
)
from study_tracker.services.aggregation import (
    category_progress,
    compute_totals,
    last_seven_days,
    month_calendar,
)
from study_tracker.services.cache import TotalsCache
from study_tracker.services.entries import EntryRepository

_logger = logging.getLogger(__name__)


@dataclass
class StatsService:
    """Serves progress totals from the cache, recomputing on a miss."""

    repository: EntryRepository
    cache: TotalsCache
    week_start: int = 0
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] | None = None
    refresh_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def now(self) -> datetime:
        """Return the reference instant in the configured timezone."""
        if self.clock is not None:
            return self.clock()
        return datetime.now(tz=ZoneInfo(self.timezone_name))

    def today(self) -> date:
        return self.now().date()

    async def get_stats(self) -> ProgressTotals:
        """Return cached totals, falling back to a fresh computation."""
        cached = await asyncio.to_thread(self.cache.read)
        if cached is not None:
            return cached
        async with self.refresh_lock:
            # A mutation may have refreshed the cache while we waited.
            cached = await asyncio.to_thread(self.cache.read)
            if cached is not None:
                return cached
            _logger.info("Progress totals cache miss, recomputing")
            entries = await asyncio.to_thread(self.repository.list_all)
            return await self.refresh(entries)

    async def recompute(self) -> ProgressTotals:
        """Compute totals from the entry store without consulting the cache."""
        entries = await asyncio.to_thread(self.repository.list_all)
        return self.compute(entries)

    def compute(self, entries: list[StudyEntry]) -> ProgressTotals:
        """Aggregate an entry snapshot against the current instant."""
        return compute_totals(entries, self.now(), self.week_start)

    async def refresh(self, entries: list[StudyEntry]) -> ProgressTotals:
        """Aggregate an entry snapshot and write it through the cache."""
        totals = self.compute(entries)
        return await asyncio.to_thread(self.cache.write, totals)

    async def get_progress(self, period: StatsPeriod) -> list[CategoryProgress]:
        """Return level and progress per category for a period."""
        totals = (await self.get_stats()).for_period(period)
        return [
            category_progress(category, totals.get(category, 0.0))
            for category in StudyCategory
        ]

    async def get_week_view(self) -> list[DaySummary]:
        """Return per-day summaries for the last seven days."""
        entries = await asyncio.to_thread(self.repository.list_all)
        return last_seven_days(entries, self.today())

    async def get_month_calendar(self, anchor: date | None = None) -> list[DaySummary]:
        """Return per-day summaries for the month containing ``anchor``."""
        entries = await asyncio.to_thread(self.repository.list_all)
        return month_calendar(entries, anchor or self.today())
