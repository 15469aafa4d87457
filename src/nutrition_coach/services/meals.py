"""Meal logging service."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from nutrition_coach.domain.errors import (
    ExternalServiceDegradedError,
    StoreUnavailableError,
)
from nutrition_coach.domain.meals import MealEntry, MealType
from nutrition_coach.services.timezones import (
    TimezoneResolver,
    day_bounds,
    local_date,
    parse_date_string,
)

_logger = logging.getLogger(__name__)

MEAL_PAGE_SIZE = 500


class MealRepository(Protocol):
    """Persistence interface for meal entries."""

    def insert_meal(
        self,
        user_id: str,
        meal_type: MealType,
        description: str,
        calories: int | None,
        consumed_at: datetime | None = None,
    ) -> MealEntry:
        """Store a meal; ``consumed_at`` defaults to now."""

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealEntry]:
        """Return meals with start <= consumed_at < end, oldest first."""

    def list_recent_meals(
        self, user_id: str, limit: int, offset: int = 0
    ) -> list[MealEntry]:
        """Return one page of meals, newest consumed first."""


class CalorieEstimator(Protocol):
    """Best-effort calorie estimation from a free-text description."""

    async def estimate_calories(self, description: str) -> int:
        """Return estimated calories or raise ExternalServiceDegradedError."""


class MealStreakRecorder(Protocol):
    """Receives each logged meal to keep the streak counter current."""

    def record_meal(
        self, user_id: str, consumed_at: datetime, timezone_name: str
    ) -> object:
        """Advance the user's streak."""


@dataclass(frozen=True)
class LoggedMeal:
    """A stored meal and where its calorie value came from."""

    meal: MealEntry
    calories_source: str | None


@dataclass
class MealLogService:
    """Service that enriches and persists meal entries."""

    repository: MealRepository
    estimator: CalorieEstimator
    streak_recorder: MealStreakRecorder
    resolver: TimezoneResolver = field(default_factory=TimezoneResolver)

    async def log_meal(  # noqa: PLR0913
        self,
        user_id: str,
        meal_type: MealType,
        description: str,
        timezone_name: str,
        calories: int | None = None,
        consumed_at: datetime | None = None,
    ) -> LoggedMeal:
        """Persist a meal, estimating calories when none were given."""
        self.resolver.zone(timezone_name)
        calories_source: str | None = "manual" if calories is not None else None
        if calories is None:
            try:
                calories = await self.estimator.estimate_calories(description)
                calories_source = "estimated"
            except ExternalServiceDegradedError as exc:
                _logger.warning(
                    "Calorie estimation failed, storing meal without calories: %s",
                    exc,
                )
                calories = None

        meal = self.repository.insert_meal(
            user_id=user_id,
            meal_type=meal_type,
            description=description,
            calories=calories,
            consumed_at=consumed_at,
        )
        try:
            self.streak_recorder.record_meal(user_id, meal.consumed_at, timezone_name)
        except StoreUnavailableError:
            _logger.exception(
                "Streak update failed after meal insert",
                extra={"user_id": user_id, "meal_id": str(meal.id)},
            )
        return LoggedMeal(meal=meal, calories_source=calories_source)

    def history(
        self, user_id: str, timezone_name: str, day: str | None = None
    ) -> list[MealEntry]:
        """Return meals consumed on a local date (default today), newest first."""
        tz = self.resolver.zone(timezone_name)
        target = (
            parse_date_string(day)
            if day is not None
            else local_date(self.resolver.now(), tz)
        )
        start, end = day_bounds(target, tz)
        meals = self.repository.list_meals_between(user_id, start, end)
        return sorted(meals, key=lambda meal: meal.consumed_at, reverse=True)


def iter_recent_meals(
    repository: MealRepository, user_id: str, page_size: int = MEAL_PAGE_SIZE
) -> Iterator[MealEntry]:
    """Yield a user's meals newest first, fetching one page at a time."""
    offset = 0
    while True:
        page = repository.list_recent_meals(user_id, limit=page_size, offset=offset)
        yield from page
        if len(page) < page_size:
            return
        offset += page_size
