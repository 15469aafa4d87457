"""Tests for container wiring."""

import asyncio

from nutrition_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_coach.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.dashboard_service.stats_service is container.stats_service
    assert container.meal_log_service.streak_recorder is container.streak_service
    assert container.meal_log_service.estimator is container.coach_service
    assert container.resolver.allow_utc_fallback is False
    assert isinstance(
        container.profile_service.repository, SupabaseProfileRepository
    )
    asyncio.run(container.close_resources())
