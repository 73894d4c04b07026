"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from nutrition_resolver.containers import AppContainer

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


@router.get("/cache/popular", dependencies=[Depends(require_admin)])
async def popular_foods(request: Request, limit: int = 50) -> dict[str, object]:
    """Return the most requested cached queries."""
    container: AppContainer = request.app.state.container
    return {"foods": container.admin_service.list_popular_foods(limit)}


@router.delete("/cache", dependencies=[Depends(require_admin)])
async def clear_cache(request: Request, query: str | None = None) -> dict[str, int]:
    """Delete one cached query, or the whole cache without a query."""
    container: AppContainer = request.app.state.container
    return {"deleted": container.admin_service.clear_cache(query)}


@router.get("/usage", dependencies=[Depends(require_admin)])
async def list_usage(request: Request, limit: int = 30) -> dict[str, object]:
    """Return recent usage rows."""
    container: AppContainer = request.app.state.container
    return {"usage": container.admin_service.list_usage(limit)}
