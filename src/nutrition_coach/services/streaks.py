"""Consecutive-day logging streaks."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.streaks import StreakCounter, StreakState
from nutrition_coach.services.timezones import (
    TimezoneResolver,
    next_day,
    shift_days,
)

_logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 5


class StreakRepository(Protocol):
    """Persistence interface for per-user streak counters."""

    def get_counter(self, user_id: str) -> StreakCounter | None:
        """Return the user's counter, if one exists."""

    def create_counter(self, user_id: str, state: StreakState) -> StreakCounter | None:
        """Insert a counter, returning None when the user already has one."""

    def replace_counter(
        self, user_id: str, expected: StreakState, state: StreakState
    ) -> StreakCounter | None:
        """Write ``state`` only while the stored state equals ``expected``.

        Returns None when another writer changed the counter first.
        """

    def save_counter(self, user_id: str, state: StreakState) -> StreakCounter:
        """Create or overwrite the user's counter unconditionally."""


def advance_streak(state: StreakState, day: str) -> StreakState:
    """Apply a meal logged on local date ``day`` to a streak state.

    A second log on the same day changes nothing. A log on the day right
    after the last one extends the streak. Anything else, including a
    back-dated log, starts a new streak of one day. A zero count is treated
    like no streak at all.
    """
    if state.last_logged_date is None or state.current_streak_days == 0:
        return StreakState(current_streak_days=1, last_logged_date=day)
    if day == state.last_logged_date:
        return state
    if day == next_day(state.last_logged_date):
        return StreakState(
            current_streak_days=state.current_streak_days + 1,
            last_logged_date=day,
        )
    return StreakState(current_streak_days=1, last_logged_date=day)


def streak_from_dates(dates: Iterable[str], today: str) -> StreakState:
    """Recompute a streak from every local date that has a meal.

    Counts the run of consecutive dates ending at ``today`` or, when today
    has nothing logged yet, at yesterday. Future dates are ignored.
    """
    logged = {day for day in dates if day <= today}
    if not logged:
        return StreakState()
    latest = max(logged)
    if latest not in {today, shift_days(today, -1)}:
        return StreakState()
    count = 0
    cursor = latest
    while cursor in logged:
        count += 1
        cursor = shift_days(cursor, -1)
    return StreakState(current_streak_days=count, last_logged_date=latest)


@dataclass
class StreakService:
    """Maintain streak counters as a side effect of meal logging."""

    repository: StreakRepository
    resolver: TimezoneResolver = field(default_factory=TimezoneResolver)

    def record_meal(
        self, user_id: str, consumed_at: datetime, timezone_name: str
    ) -> StreakCounter:
        """Advance the user's streak for a meal consumed at an instant.

        The counter is read, advanced and written back with a conditional
        write that only succeeds while the stored state is unchanged. A lost
        race rereads the counter and tries again.
        """
        day = self.resolver.date_in(consumed_at, timezone_name)
        for _ in range(MAX_UPDATE_ATTEMPTS):
            existing = self.repository.get_counter(user_id)
            if existing is None:
                created = self.repository.create_counter(
                    user_id, advance_streak(StreakState(), day)
                )
                if created is not None:
                    return created
                continue
            updated = advance_streak(existing.state, day)
            if updated == existing.state:
                return existing
            last_logged = existing.state.last_logged_date
            if last_logged and day < last_logged:
                _logger.info(
                    "Back-dated meal reset streak",
                    extra={"user_id": user_id, "day": day},
                )
            stored = self.repository.replace_counter(user_id, existing.state, updated)
            if stored is not None:
                return stored
            _logger.debug(
                "Streak counter changed concurrently, retrying",
                extra={"user_id": user_id},
            )
        raise StoreUnavailableError(
            f"Failed to update streak for {user_id}: too many concurrent writes"
        )

    def current_streak(self, user_id: str) -> int:
        """Return the user's current streak length, 0 when never logged."""
        counter = self.repository.get_counter(user_id)
        if counter is None:
            return 0
        return counter.state.current_streak_days

    def get_counter(self, user_id: str) -> StreakCounter | None:
        """Return the full counter record."""
        return self.repository.get_counter(user_id)

    def rebuild(
        self, user_id: str, consumed_at: Iterable[datetime], timezone_name: str
    ) -> StreakCounter:
        """Replace the counter with one recomputed from meal history."""
        today = self.resolver.today_in(timezone_name)
        days = [
            self.resolver.date_in(instant, timezone_name) for instant in consumed_at
        ]
        return self.repository.save_counter(user_id, streak_from_dates(days, today))
