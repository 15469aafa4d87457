"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_coach.api.schemas import streak_counter_payload
from nutrition_coach.services.meals import iter_recent_meals

if TYPE_CHECKING:
    from nutrition_coach.containers import AppContainer

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


@router.get("/users/{user_id}/streak", dependencies=[Depends(require_admin)])
async def user_streak(user_id: str, request: Request) -> dict[str, object]:
    """Return the stored streak counter for a user."""
    container: AppContainer = request.app.state.container
    counter = container.streak_service.get_counter(user_id)
    if counter is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return streak_counter_payload(counter)


@router.post("/users/{user_id}/streak/rebuild", dependencies=[Depends(require_admin)])
async def rebuild_streak(
    user_id: str, request: Request, timezone: str | None = None
) -> dict[str, object]:
    """Recompute a user's streak counter from their meal history."""
    container: AppContainer = request.app.state.container
    container.resolver.zone(timezone)
    meals = iter_recent_meals(container.meal_log_service.repository, user_id)
    counter = container.streak_service.rebuild(
        user_id, (meal.consumed_at for meal in meals), timezone
    )
    return streak_counter_payload(counter)
