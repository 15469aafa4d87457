"""Supabase repository for streak counters."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrition_coach.adapters.supabase_query import execute_query, parse_timestamp
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.streaks import StreakCounter, StreakState
from nutrition_coach.services.streaks import StreakRepository

_COLUMNS = "user_id, current_streak_days, last_logged_date, updated_at"


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Supabase implementation for per-user streak counters."""

    client: Client

    def get_counter(self, user_id: str) -> StreakCounter | None:
        """Return the user's counter row, if present."""
        rows = execute_query(
            self.client.table("streak_counter")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .limit(1),
            "load streak",
        )
        if not rows:
            return None
        return _parse_row(rows[0])

    def create_counter(self, user_id: str, state: StreakState) -> StreakCounter | None:
        """Insert the first counter row, leaving an existing row untouched."""
        rows = execute_query(
            self.client.table("streak_counter").upsert(
                _payload(user_id, state), on_conflict="user_id", ignore_duplicates=True
            ),
            "create streak",
        )
        return _parse_row(rows[0]) if rows else None

    def replace_counter(
        self, user_id: str, expected: StreakState, state: StreakState
    ) -> StreakCounter | None:
        """Update the row only if it still holds the expected state."""
        query = (
            self.client.table("streak_counter")
            .update(_payload(user_id, state))
            .eq("user_id", user_id)
            .eq("current_streak_days", expected.current_streak_days)
        )
        if expected.last_logged_date is None:
            query = query.is_("last_logged_date", "null")
        else:
            query = query.eq("last_logged_date", expected.last_logged_date)
        rows = execute_query(query, "update streak")
        return _parse_row(rows[0]) if rows else None

    def save_counter(self, user_id: str, state: StreakState) -> StreakCounter:
        """Upsert the user's counter row."""
        rows = execute_query(
            self.client.table("streak_counter").upsert(
                _payload(user_id, state), on_conflict="user_id"
            ),
            "save streak",
        )
        if not rows:
            raise StoreUnavailableError("Failed to save streak: no row returned")
        return _parse_row(rows[0])


def _payload(user_id: str, state: StreakState) -> dict[str, object]:
    return {
        "user_id": user_id,
        "current_streak_days": state.current_streak_days,
        "last_logged_date": state.last_logged_date,
        "updated_at": datetime.now(tz=UTC).isoformat(),
    }


def _parse_row(row: dict[str, object]) -> StreakCounter:
    last_logged = row.get("last_logged_date")
    updated_raw = row.get("updated_at")
    return StreakCounter(
        user_id=str(row["user_id"]),
        state=StreakState(
            current_streak_days=int(row.get("current_streak_days") or 0),
            last_logged_date=str(last_logged) if last_logged else None,
        ),
        updated_at=parse_timestamp(updated_raw) if updated_raw else None,
    )
