"""Dependency container wiring for the application."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from study_tracker.adapters.supabase_entry_repository import SupabaseEntryRepository
from study_tracker.adapters.supabase_totals_repository import (
    SupabaseTotalsRepository,
)
from study_tracker.config import Settings, parse_week_start
from study_tracker.domain.entries import StudyEntry
from study_tracker.services.cache import TotalsCache, TotalsRepository
from study_tracker.services.entries import EntryRepository, StudyEntryService
from study_tracker.services.notifier import ChangeNotifier
from study_tracker.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_service: StudyEntryService
    stats_service: StatsService
    notifier: ChangeNotifier
    close_resources: Callable[[], Awaitable[None]]
    store_client: Client | None = None


def wire_services(
    settings: Settings,
    entry_repository: EntryRepository,
    totals_repository: TotalsRepository,
) -> tuple[StudyEntryService, StatsService, ChangeNotifier]:
    """Connect the core services around a pair of repositories."""
    stats_service = StatsService(
        repository=entry_repository,
        cache=TotalsCache(totals_repository),
        week_start=parse_week_start(settings.week_start),
        timezone_name=settings.timezone,
    )

    async def load_entries() -> list[StudyEntry]:
        return await asyncio.to_thread(entry_repository.list_all)

    notifier = ChangeNotifier(
        load_entries=load_entries,
        load_totals=stats_service.get_stats,
    )
    entry_service = StudyEntryService(
        repository=entry_repository,
        stats_service=stats_service,
        notifier=notifier,
    )
    return entry_service, stats_service, notifier


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    entry_service, stats_service, notifier = wire_services(
        resolved_settings,
        SupabaseEntryRepository(supabase_client),
        SupabaseTotalsRepository(supabase_client),
    )

    async def close_resources() -> None:
        await asyncio.to_thread(supabase_client.postgrest.session.close)

    return AppContainer(
        settings=resolved_settings,
        entry_service=entry_service,
        stats_service=stats_service,
        notifier=notifier,
        close_resources=close_resources,
        store_client=supabase_client,
    )
