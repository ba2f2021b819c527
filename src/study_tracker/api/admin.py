"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from study_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/subscribers", dependencies=[Depends(require_admin)])
async def subscribers(request: Request) -> dict[str, int]:
    """Return the number of live entry and totals observers."""
    container: AppContainer = request.app.state.container
    return {"subscribers": container.notifier.subscriber_count}


@router.post("/reset", dependencies=[Depends(require_admin)])
async def factory_reset(request: Request) -> dict[str, str]:
    """Delete every study entry and the cached totals."""
    container: AppContainer = request.app.state.container
    await container.entry_service.reset()
    return {"status": "reset"}
