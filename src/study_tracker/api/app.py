"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from study_tracker.api.admin import router as admin_router
from study_tracker.api.models import (
    DeleteHourResponse,
    RecordHoursRequest,
    RecordHoursResponse,
)
from study_tracker.app_logging import configure_logging
from study_tracker.containers import AppContainer
from study_tracker.domain.entries import StudyEntry
from study_tracker.domain.errors import (
    InvalidInput,
    NotFound,
    ResetFailure,
    StoreUnavailable,
)
from study_tracker.domain.stats import (
    CategoryProgress,
    DaySummary,
    ProgressTotals,
    StatsPeriod,
)

HTTP_422_UNPROCESSABLE = 422

_ERROR_STATUS = (
    (InvalidInput, HTTP_422_UNPROCESSABLE),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ResetFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    for error_type, status_code in _ERROR_STATUS:
        app.add_exception_handler(error_type, _error_handler(status_code, logger))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/entries")
    async def list_entries(
        request: Request, day: str | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Return all entries, or the entry for one date."""
        state_container: AppContainer = request.app.state.container
        entries = await state_container.entry_service.list_entries(day)
        return {"entries": [_serialize_entry(entry) for entry in entries]}

    @app.get("/entries/{day}")
    async def get_entry(day: str, request: Request) -> dict[str, object]:
        """Return the entry for a date."""
        state_container: AppContainer = request.app.state.container
        entry = await state_container.entry_service.get_entry(day)
        return _serialize_entry(entry)

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    async def record_hours(
        payload: RecordHoursRequest, request: Request
    ) -> RecordHoursResponse:
        """Log hours for a category on a date."""
        state_container: AppContainer = request.app.state.container
        entry_id = await state_container.entry_service.record_hours(
            payload.date, payload.category, payload.hours
        )
        return RecordHoursResponse(entry_id=str(entry_id))

    @app.delete("/entries/{entry_id}/hours/{index}")
    async def delete_hour(
        entry_id: UUID, index: int, request: Request
    ) -> DeleteHourResponse:
        """Delete one hour record by its position in the entry."""
        state_container: AppContainer = request.app.state.container
        deleted = await state_container.entry_service.delete_hour(entry_id, index)
        return DeleteHourResponse(deleted=deleted)

    @app.get("/stats")
    async def stats(request: Request) -> dict[str, object]:
        """Return weekly, monthly and all-time totals."""
        state_container: AppContainer = request.app.state.container
        totals = await state_container.stats_service.get_stats()
        return _serialize_totals(totals)

    @app.get("/stats/progress/{period}")
    async def progress(period: StatsPeriod, request: Request) -> dict[str, object]:
        """Return level and progress per category for a period."""
        state_container: AppContainer = request.app.state.container
        items = await state_container.stats_service.get_progress(period)
        return {
            "period": period.value,
            "categories": [_serialize_progress(item) for item in items],
        }

    @app.get("/stats/week")
    async def week_view(request: Request) -> dict[str, object]:
        """Return per-day totals for the last seven days."""
        state_container: AppContainer = request.app.state.container
        days = await state_container.stats_service.get_week_view()
        return {"days": [_serialize_day(day) for day in days]}

    @app.get("/stats/calendar")
    async def calendar(
        request: Request, month: date | None = None
    ) -> dict[str, object]:
        """Return per-day totals for a month."""
        state_container: AppContainer = request.app.state.container
        days = await state_container.stats_service.get_month_calendar(month)
        return {"days": [_serialize_day(day) for day in days]}

    return app


def _error_handler(
    status_code: int, logger: logging.Logger
) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Request failed: %s %s: %s", request.method, request.url.path, exc
            )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handle


def _serialize_entry(entry: StudyEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "date": entry.date.isoformat(),
        "hours": [
            {"category": record.category.value, "hours": record.hours}
            for record in entry.hour_records
        ],
        "total_hours": entry.total_hours,
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
    }


def _serialize_totals(totals: ProgressTotals) -> dict[str, object]:
    return {
        "weekly_totals": {k.value: v for k, v in totals.weekly_totals.items()},
        "monthly_totals": {k.value: v for k, v in totals.monthly_totals.items()},
        "all_time_totals": {k.value: v for k, v in totals.all_time_totals.items()},
        "last_updated": totals.last_updated.isoformat(),
    }


def _serialize_progress(item: CategoryProgress) -> dict[str, object]:
    return {
        "category": item.category.value,
        "hours": item.hours,
        "level": item.level,
        "progress_percent": item.progress_percent,
    }


def _serialize_day(day: DaySummary) -> dict[str, object]:
    return {
        "day": day.day.isoformat(),
        "totals": {k.value: v for k, v in day.totals.items()},
        "total_hours": day.total_hours,
    }
