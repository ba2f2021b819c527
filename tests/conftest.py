"""Shared test fixtures."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from study_tracker.config import Settings
from study_tracker.containers import AppContainer, wire_services
from study_tracker.domain.entries import StudyEntry, StudyHourRecord
from study_tracker.domain.errors import NotFound, StoreUnavailable
from study_tracker.domain.stats import ProgressTotals
from study_tracker.services.cache import TotalsRepository
from study_tracker.services.entries import EntryRepository

FIXED_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    entries: dict[UUID, StudyEntry] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create(self, day: date, record: StudyHourRecord) -> UUID:
        self.calls.append("create")
        with self._lock:
            entry = StudyEntry(id=uuid4(), date=day, hour_records=(record,))
            self.entries[entry.id] = entry
            return entry.id

    def append(self, entry_id: UUID, record: StudyHourRecord) -> None:
        self.calls.append("append")
        with self._lock:
            entry = self.entries.get(entry_id)
            if entry is None:
                raise NotFound(str(entry_id))
            self.entries[entry_id] = StudyEntry(
                id=entry.id,
                date=entry.date,
                hour_records=(*entry.hour_records, record),
            )

    def remove_hour_at(self, entry_id: UUID, index: int) -> bool:
        self.calls.append("remove_hour_at")
        with self._lock:
            entry = self.entries.get(entry_id)
            if entry is None or not 0 <= index < len(entry.hour_records):
                raise NotFound(f"{entry_id}:{index}")
            remaining = tuple(
                record
                for position, record in enumerate(entry.hour_records)
                if position != index
            )
            if not remaining:
                del self.entries[entry_id]
                return True
            self.entries[entry_id] = StudyEntry(
                id=entry.id, date=entry.date, hour_records=remaining
            )
            return False

    def get(self, entry_id: UUID) -> StudyEntry | None:
        return self.entries.get(entry_id)

    def list_all(self) -> list[StudyEntry]:
        with self._lock:
            return sorted(self.entries.values(), key=lambda entry: entry.date)

    def find_by_date(self, day: date) -> StudyEntry | None:
        with self._lock:
            for entry in self.entries.values():
                if entry.date == day:
                    return entry
            return None

    def clear_all(self) -> None:
        self.calls.append("clear_all")
        with self._lock:
            self.entries.clear()


@dataclass
class FailingEntryRepository(InMemoryEntryRepository):
    """Entry repository whose listed operations raise StoreUnavailable."""

    failing: set[str] = field(default_factory=set)

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise StoreUnavailable(f"{operation} unavailable")

    def create(self, day: date, record: StudyHourRecord) -> UUID:
        self._check("create")
        return super().create(day, record)

    def list_all(self) -> list[StudyEntry]:
        self._check("list_all")
        return super().list_all()

    def clear_all(self) -> None:
        self._check("clear_all")
        super().clear_all()


@dataclass
class InMemoryTotalsRepository(TotalsRepository):
    """In-memory totals repository for tests."""

    totals: ProgressTotals | None = None
    writes: int = 0
    fail_delete: bool = False

    def get_totals(self) -> ProgressTotals | None:
        return self.totals

    def upsert_totals(self, totals: ProgressTotals) -> None:
        self.writes += 1
        self.totals = totals

    def delete_totals(self) -> None:
        if self.fail_delete:
            raise StoreUnavailable("totals unavailable")
        self.totals = None


def make_container(
    settings: Settings,
    entry_repository: EntryRepository | None = None,
    totals_repository: TotalsRepository | None = None,
) -> AppContainer:
    entry_service, stats_service, notifier = wire_services(
        settings,
        entry_repository or InMemoryEntryRepository(),
        totals_repository or InMemoryTotalsRepository(),
    )
    stats_service.clock = lambda: FIXED_NOW

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        entry_service=entry_service,
        stats_service=stats_service,
        notifier=notifier,
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
            "c2lnbmF0dXJl"
        ),
        admin_token="admin-token",
    )


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def totals_repository() -> InMemoryTotalsRepository:
    return InMemoryTotalsRepository()


@pytest.fixture
def container(
    settings: Settings,
    entry_repository: InMemoryEntryRepository,
    totals_repository: InMemoryTotalsRepository,
) -> AppContainer:
    return make_container(settings, entry_repository, totals_repository)
