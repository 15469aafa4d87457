"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_coach.adapters.fdc_client import HttpxFdcClient
from nutrition_coach.adapters.openai_vision_client import OpenAIVisionClient
from nutrition_coach.adapters.openrouter_client import OpenRouterChatClient
from nutrition_coach.adapters.supabase_meal_repository import SupabaseMealRepository
from nutrition_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_coach.adapters.supabase_streak_repository import (
    SupabaseStreakRepository,
)
from nutrition_coach.adapters.supabase_weight_repository import (
    SupabaseWeightRepository,
)
from nutrition_coach.config import Settings
from nutrition_coach.services.cache import InMemoryCache
from nutrition_coach.services.coach import CoachService
from nutrition_coach.services.dashboard import DashboardService
from nutrition_coach.services.meals import MealLogService
from nutrition_coach.services.nutrition import NutritionService
from nutrition_coach.services.profile import ProfileService
from nutrition_coach.services.stats import StatsService
from nutrition_coach.services.streaks import StreakService
from nutrition_coach.services.timezones import TimezoneResolver
from nutrition_coach.services.vision import FoodDetectionService
from nutrition_coach.services.weight import WeightService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolver: TimezoneResolver
    meal_log_service: MealLogService
    stats_service: StatsService
    streak_service: StreakService
    weight_service: WeightService
    dashboard_service: DashboardService
    coach_service: CoachService
    nutrition_service: NutritionService
    food_detection_service: FoodDetectionService
    profile_service: ProfileService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    resolver = TimezoneResolver(
        allow_utc_fallback=resolved_settings.allow_utc_fallback
    )
    meal_repository = SupabaseMealRepository(supabase_client)
    weight_repository = SupabaseWeightRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))

    chat_client = OpenRouterChatClient.create(
        api_key=resolved_settings.openrouter_api_key,
        base_url=resolved_settings.openrouter_base_url,
        app_url=resolved_settings.app_url,
    )
    coach_service = CoachService(
        client=chat_client,
        tip_model=resolved_settings.openrouter_tip_model,
        meal_model=resolved_settings.openrouter_meal_model,
    )
    streak_service = StreakService(streak_repository, resolver)
    meal_log_service = MealLogService(
        repository=meal_repository,
        estimator=coach_service,
        streak_recorder=streak_service,
        resolver=resolver,
    )
    stats_service = StatsService(meal_repository, resolver)
    weight_service = WeightService(weight_repository, resolver)
    dashboard_service = DashboardService(
        stats_service=stats_service,
        streak_service=streak_service,
        weight_service=weight_service,
        metric_timeout_seconds=resolved_settings.dashboard_metric_timeout_seconds,
    )

    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    nutrition_service = NutritionService(
        fdc_client=fdc_client,
        cache=InMemoryCache(),
    )
    vision_client = OpenAIVisionClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    food_detection_service = FoodDetectionService(
        client=vision_client, nutrition_service=nutrition_service
    )

    async def close_resources() -> None:
        await fdc_client.close()
        await chat_client.close()
        await vision_client.close()

    return AppContainer(
        settings=resolved_settings,
        resolver=resolver,
        meal_log_service=meal_log_service,
        stats_service=stats_service,
        streak_service=streak_service,
        weight_service=weight_service,
        dashboard_service=dashboard_service,
        coach_service=coach_service,
        nutrition_service=nutrition_service,
        food_detection_service=food_detection_service,
        profile_service=profile_service,
        close_resources=close_resources,
    )
