"""Daily meal aggregation by local calendar date."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from zoneinfo import ZoneInfo

from nutrition_coach.domain.errors import ValidationError
from nutrition_coach.domain.meals import DailySummary, MealEntry, TodaysTotals
from nutrition_coach.services.meals import MealRepository, iter_recent_meals
from nutrition_coach.services.timezones import (
    TimezoneResolver,
    day_bounds,
    local_date,
)

MIN_SUMMARY_DAYS = 1
MAX_SUMMARY_DAYS = 365


@dataclass
class StatsService:
    """Service computing day-bucketed meal figures for a user."""

    repository: MealRepository
    resolver: TimezoneResolver = field(default_factory=TimezoneResolver)

    def daily_summaries(
        self, user_id: str, timezone_name: str, limit: int = 30
    ) -> list[DailySummary]:
        """Return per-day summaries, most recent first."""
        validate_limit(limit)
        tz = self.resolver.zone(timezone_name)
        meals = take_recent_days(
            iter_recent_meals(self.repository, user_id), tz, limit
        )
        return summarize_days(meals, timezone_name, limit, self.resolver)

    def todays_totals(self, user_id: str, timezone_name: str) -> TodaysTotals:
        """Return calories and entry count for the user's local today."""
        tz = self.resolver.zone(timezone_name)
        start, end = day_bounds(local_date(self.resolver.now(), tz), tz)
        meals = self.repository.list_meals_between(user_id, start, end)
        return todays_totals(meals, timezone_name, self.resolver)


def validate_limit(limit: int) -> None:
    """Reject summary limits outside the supported range."""
    if not MIN_SUMMARY_DAYS <= limit <= MAX_SUMMARY_DAYS:
        raise ValidationError(
            f"Limit must be between {MIN_SUMMARY_DAYS} and {MAX_SUMMARY_DAYS}"
        )


def take_recent_days(
    meals: Iterable[MealEntry], tz: ZoneInfo, days: int
) -> list[MealEntry]:
    """Take meals from a newest-first stream until ``days`` local dates are covered.

    Stops reading at the first meal of an older date, so a paged stream is only
    fetched as far as the requested days reach.
    """
    seen: set[date] = set()
    taken: list[MealEntry] = []
    for meal in meals:
        day = local_date(meal.consumed_at, tz)
        if day not in seen:
            if len(seen) == days:
                break
            seen.add(day)
        taken.append(meal)
    return taken


def summarize_days(
    meals: Iterable[MealEntry],
    timezone_name: str,
    limit: int,
    resolver: TimezoneResolver,
) -> list[DailySummary]:
    """Group meals by local consumed date and summarize each day.

    Meals with no calorie value still count as entries but add nothing to
    the calorie total. The result is sorted newest date first and truncated
    to ``limit`` days.
    """
    validate_limit(limit)
    tz = resolver.zone(timezone_name)
    today = resolver.today_in(timezone_name)

    counts: dict[str, int] = {}
    calories: dict[str, int] = {}
    for meal in meals:
        day = local_date(meal.consumed_at, tz).isoformat()
        counts[day] = counts.get(day, 0) + 1
        calories[day] = calories.get(day, 0) + (meal.calories or 0)

    # ISO dates sort chronologically as strings.
    days = sorted(counts, reverse=True)[:limit]
    return [
        DailySummary(
            date=day,
            meal_count=counts[day],
            total_calories=calories[day],
            is_today=day == today,
        )
        for day in days
    ]


def todays_totals(
    meals: Iterable[MealEntry], timezone_name: str, resolver: TimezoneResolver
) -> TodaysTotals:
    """Sum only the meals consumed on the local today."""
    tz = resolver.zone(timezone_name)
    today = local_date(resolver.now(), tz)
    entries = 0
    total = 0
    for meal in meals:
        if local_date(meal.consumed_at, tz) != today:
            continue
        entries += 1
        total += meal.calories or 0
    return TodaysTotals(calories_today=total, entries_today=entries)
