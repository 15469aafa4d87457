"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class MealType(str, Enum):
    """Fixed meal categories; immutable once a meal is created."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


@dataclass(frozen=True)
class MealEntry:
    """A stored meal log row."""

    id: UUID
    user_id: str
    meal_type: MealType
    description: str
    calories: int | None
    consumed_at: datetime
    created_at: datetime


@dataclass(frozen=True)
class DailySummary:
    """Meals grouped on one local calendar date."""

    date: str
    meal_count: int
    total_calories: int
    is_today: bool


@dataclass(frozen=True)
class TodaysTotals:
    """Calories and entry count for the viewer's current local date."""

    calories_today: int = 0
    entries_today: int = 0
