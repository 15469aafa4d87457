"""Domain models for logging streaks."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StreakState:
    """Consecutive-day count and the local date it was last extended."""

    current_streak_days: int = 0
    last_logged_date: str | None = None


@dataclass(frozen=True)
class StreakCounter:
    """Persisted streak row for a user."""

    user_id: str
    state: StreakState
    updated_at: datetime | None = None
