"""Onboarding endpoints: health profile, goals, restrictions and tutorial."""

from fastapi import APIRouter, Depends, Request

from nutrition_coach.api.dependencies import require_user
from nutrition_coach.api.schemas import (
    DietaryRestrictionsRequest,
    HealthGoalsRequest,
    HealthProfileRequest,
    TutorialRequest,
    goal_payload,
    profile_payload,
    progress_payload,
    restrictions_payload,
)
from nutrition_coach.services.profile import ProfileService

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def _profile_service(request: Request) -> ProfileService:
    return request.app.state.container.profile_service


@router.get("/health-profile")
async def get_health_profile(
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    """Return the caller's health profile, or null before the step is done."""
    profile = service.profile(user_id)
    return {
        "success": True,
        "health_profile": profile_payload(profile) if profile else None,
    }


@router.post("/health-profile")
async def save_health_profile(
    body: HealthProfileRequest,
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    profile = service.save_profile(body.to_profile(user_id))
    return {
        "success": True,
        "health_profile": profile_payload(profile),
        "message": "Health profile saved successfully",
    }


@router.get("/health-goals")
async def get_health_goals(
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    goals = service.goals(user_id)
    return {"success": True, "goals": [goal_payload(goal) for goal in goals]}


@router.post("/health-goals")
async def save_health_goals(
    body: HealthGoalsRequest,
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    """Replace the caller's goals; the first becomes primary if none is marked."""
    goals = service.set_goals(user_id, body.to_goals())
    return {
        "success": True,
        "goals": [goal_payload(goal) for goal in goals],
        "message": "Health goals saved successfully",
    }


@router.get("/dietary-restrictions")
async def get_dietary_restrictions(
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    restrictions = service.restrictions(user_id)
    return {
        "success": True,
        "dietary_restrictions": (
            restrictions_payload(restrictions) if restrictions else None
        ),
    }


@router.post("/dietary-restrictions")
async def save_dietary_restrictions(
    body: DietaryRestrictionsRequest,
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    restrictions = service.save_restrictions(user_id, body.to_restrictions())
    return {
        "success": True,
        "dietary_restrictions": restrictions_payload(restrictions),
        "message": "Dietary restrictions saved successfully",
    }


@router.post("/tutorial")
async def complete_tutorial(
    body: TutorialRequest,
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    """Record the tutorial step, finished or skipped, and return progress."""
    service.complete_tutorial(user_id, body.completed)
    return {"success": True, "progress": progress_payload(service.progress(user_id))}


@router.get("/progress")
async def onboarding_progress(
    user_id: str = Depends(require_user),
    service: ProfileService = Depends(_profile_service),
) -> dict[str, object]:
    return {"success": True, "progress": progress_payload(service.progress(user_id))}
