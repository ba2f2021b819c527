"""Cached progress totals."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol

from study_tracker.domain.stats import ProgressTotals


class TotalsRepository(Protocol):
    """Persistence interface for the single progress totals row."""

    def get_totals(self) -> ProgressTotals | None:
        """Return the stored totals, if any."""

    def upsert_totals(self, totals: ProgressTotals) -> None:
        """Create or overwrite the stored totals."""

    def delete_totals(self) -> None:
        """Remove the stored totals."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TotalsCache:
    """Advisory materialization of aggregated totals.

    A read returning ``None`` is a cache miss; callers recompute from entries.
    """

    repository: TotalsRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    def read(self) -> ProgressTotals | None:
        """Return the cached totals, or ``None`` when absent."""
        return self.repository.get_totals()

    def write(self, totals: ProgressTotals) -> ProgressTotals:
        """Replace the cached totals, stamping ``last_updated``."""
        stamped = replace(totals, last_updated=self.clock())
        self.repository.upsert_totals(stamped)
        return stamped

    def invalidate(self) -> None:
        """Drop the cached totals."""
        self.repository.delete_totals()
