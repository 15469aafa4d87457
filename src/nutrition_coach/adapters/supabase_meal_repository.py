"""Supabase repository for meal entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_coach.adapters.supabase_query import execute_query, parse_timestamp
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.meals import MealEntry, MealType
from nutrition_coach.services.meals import MealRepository

_COLUMNS = (
    "meal_entry_id, user_id, meal_type, description_text, calories_value, "
    "consumed_at, created_at"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meal entries."""

    client: Client

    def insert_meal(
        self,
        user_id: str,
        meal_type: MealType,
        description: str,
        calories: int | None,
        consumed_at: datetime | None = None,
    ) -> MealEntry:
        """Insert a meal row and return the stored entry."""
        payload: dict[str, object] = {
            "user_id": user_id,
            "meal_type": meal_type.value,
            "description_text": description,
            "calories_value": calories,
        }
        if consumed_at is not None:
            payload["consumed_at"] = consumed_at.isoformat()
        rows = execute_query(
            self.client.table("meal_entry").insert(payload), "insert meal"
        )
        if not rows:
            raise StoreUnavailableError("Failed to insert meal: no row returned")
        return _parse_row(rows[0])

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealEntry]:
        """Return meals consumed in the time range, oldest first."""
        rows = execute_query(
            self.client.table("meal_entry")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .gte("consumed_at", start.isoformat())
            .lt("consumed_at", end.isoformat())
            .order("consumed_at", desc=False),
            "list meals",
        )
        return [_parse_row(row) for row in rows]

    def list_recent_meals(
        self, user_id: str, limit: int, offset: int = 0
    ) -> list[MealEntry]:
        """Return one page of meals, newest consumed first."""
        rows = execute_query(
            self.client.table("meal_entry")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("consumed_at", desc=True)
            .order("meal_entry_id", desc=True)
            .range(offset, offset + limit - 1),
            "list recent meals",
        )
        return [_parse_row(row) for row in rows]


def _parse_row(row: dict[str, object]) -> MealEntry:
    calories = row.get("calories_value")
    consumed_at = parse_timestamp(row.get("consumed_at"))
    created_raw = row.get("created_at")
    return MealEntry(
        id=UUID(str(row["meal_entry_id"])),
        user_id=str(row["user_id"]),
        meal_type=MealType(str(row["meal_type"])),
        description=str(row.get("description_text") or ""),
        calories=int(calories) if calories is not None else None,
        consumed_at=consumed_at,
        created_at=parse_timestamp(created_raw) if created_raw else consumed_at,
    )
