"""Supabase repository for cached progress totals."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from study_tracker.adapters.supabase_errors import store_errors
from study_tracker.domain.entries import StudyCategory
from study_tracker.domain.stats import ProgressTotals
from study_tracker.services.cache import TotalsRepository

TABLE = "progress_totals"
ROW_ID = "global"


@dataclass
class SupabaseTotalsRepository(TotalsRepository):
    """Stores the single progress totals row in Supabase."""

    client: Client

    def get_totals(self) -> ProgressTotals | None:
        """Return the cached totals row, if present."""
        with store_errors("read totals"):
            response = (
                self.client.table(TABLE)
                .select(
                    "weekly_totals, monthly_totals, all_time_totals, last_updated"
                )
                .eq("id", ROW_ID)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_totals(response.data[0])

    def upsert_totals(self, totals: ProgressTotals) -> None:
        """Create or overwrite the totals row."""
        with store_errors("write totals"):
            self.client.table(TABLE).upsert(
                {
                    "id": ROW_ID,
                    "weekly_totals": _serialize_totals(totals.weekly_totals),
                    "monthly_totals": _serialize_totals(totals.monthly_totals),
                    "all_time_totals": _serialize_totals(totals.all_time_totals),
                    "last_updated": totals.last_updated.isoformat(),
                }
            ).execute()

    def delete_totals(self) -> None:
        """Remove the totals row."""
        with store_errors("delete totals"):
            self.client.table(TABLE).delete().eq("id", ROW_ID).execute()


def _serialize_totals(totals: dict[StudyCategory, float]) -> dict[str, float]:
    return {category.value: totals.get(category, 0.0) for category in StudyCategory}


def _parse_mapping(raw: object) -> dict[StudyCategory, float]:
    values = raw if isinstance(raw, dict) else {}
    return {
        category: float(values.get(category.value) or 0.0)
        for category in StudyCategory
    }


def _parse_totals(row: dict[str, object]) -> ProgressTotals:
    return ProgressTotals(
        weekly_totals=_parse_mapping(row.get("weekly_totals")),
        monthly_totals=_parse_mapping(row.get("monthly_totals")),
        all_time_totals=_parse_mapping(row.get("all_time_totals")),
        last_updated=datetime.fromisoformat(str(row["last_updated"])),
    )
