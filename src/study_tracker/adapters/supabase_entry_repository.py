"""Supabase repository for study entries."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from study_tracker.adapters.supabase_errors import store_errors
from study_tracker.domain.entries import StudyEntry, StudyHourRecord, parse_category
from study_tracker.domain.errors import InvalidInput, NotFound, StoreUnavailable
from study_tracker.services.entries import EntryRepository

TABLE = "study_entries"
COLUMNS = "id, date, hours, updated_at"
# PostgREST refuses an unfiltered DELETE; no row ever has the nil UUID.
NIL_UUID = "00000000-0000-0000-0000-000000000000"

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for study entries."""

    client: Client

    def create(self, day: date, record: StudyHourRecord) -> UUID:
        """Insert a new entry row for a date."""
        with store_errors("create entry"):
            response = (
                self.client.table(TABLE)
                .insert(
                    {
                        "date": day.isoformat(),
                        "hours": [_serialize_record(record)],
                        "updated_at": _now_iso(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StoreUnavailable("Failed to create study entry")
        return UUID(str(response.data[0]["id"]))

    def append(self, entry_id: UUID, record: StudyHourRecord) -> None:
        """Append a record to an entry's hours."""
        entry = self.get(entry_id)
        if entry is None:
            raise NotFound(f"Study entry {entry_id} not found")
        records = [*entry.hour_records, record]
        self._write_hours(entry_id, records)

    def remove_hour_at(self, entry_id: UUID, index: int) -> bool:
        """Remove one record, deleting the row when it was the last one."""
        entry = self.get(entry_id)
        if entry is None:
            raise NotFound(f"Study entry {entry_id} not found")
        if not 0 <= index < len(entry.hour_records):
            raise NotFound(f"Study entry {entry_id} has no hour record {index}")
        remaining = [
            record
            for position, record in enumerate(entry.hour_records)
            if position != index
        ]
        if not remaining:
            with store_errors("delete entry"):
                self.client.table(TABLE).delete().eq("id", str(entry_id)).execute()
            return True
        self._write_hours(entry_id, remaining)
        return False

    def get(self, entry_id: UUID) -> StudyEntry | None:
        """Return an entry by id."""
        with store_errors("get entry"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("id", str(entry_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def list_all(self) -> list[StudyEntry]:
        """Return every entry ordered by date."""
        with store_errors("list entries"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .order("date", desc=False)
                .execute()
            )
        return [_parse_entry(row) for row in response.data or []]

    def find_by_date(self, day: date) -> StudyEntry | None:
        """Return the entry for a date."""
        with store_errors("find entry"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("date", day.isoformat())
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def clear_all(self) -> None:
        """Delete every entry with a single statement."""
        with store_errors("clear entries"):
            self.client.table(TABLE).delete().neq("id", NIL_UUID).execute()

    def _write_hours(self, entry_id: UUID, records: list[StudyHourRecord]) -> None:
        with store_errors("update entry"):
            response = (
                self.client.table(TABLE)
                .update(
                    {
                        "hours": [_serialize_record(record) for record in records],
                        "updated_at": _now_iso(),
                    }
                )
                .eq("id", str(entry_id))
                .execute()
            )
        if not response.data:
            raise NotFound(f"Study entry {entry_id} not found")


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def _serialize_record(record: StudyHourRecord) -> dict[str, object]:
    return {"category": record.category.value, "hours": record.hours}


def _parse_entry(row: dict[str, object]) -> StudyEntry:
    updated_at_raw = row.get("updated_at")
    return StudyEntry(
        id=UUID(str(row["id"])),
        date=date.fromisoformat(str(row["date"])),
        hour_records=_parse_records(row),
        updated_at=(
            datetime.fromisoformat(updated_at_raw)
            if isinstance(updated_at_raw, str) and updated_at_raw
            else None
        ),
    )


def _parse_records(row: dict[str, object]) -> tuple[StudyHourRecord, ...]:
    records = []
    for item in row.get("hours") or []:
        if not isinstance(item, dict):
            continue
        try:
            records.append(
                StudyHourRecord(
                    category=parse_category(item.get("category")),
                    hours=float(item.get("hours", 0.0)),
                )
            )
        except (InvalidInput, TypeError, ValueError):
            _logger.warning(
                "Skipping malformed hour record: entry=%s item=%r", row.get("id"), item
            )
    return tuple(records)
