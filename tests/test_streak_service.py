"""Tests for consecutive-day streaks."""

from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.streaks import StreakCounter, StreakState
from nutrition_coach.services.streaks import (
    StreakService,
    advance_streak,
    streak_from_dates,
)
from tests.conftest import InMemoryStreakRepository


def test_first_log_starts_streak() -> None:
    assert advance_streak(StreakState(), "2024-06-15") == StreakState(1, "2024-06-15")


def test_same_day_log_changes_nothing() -> None:
    state = StreakState(4, "2024-06-15")

    assert advance_streak(state, "2024-06-15") is state


def test_next_day_log_extends_streak() -> None:
    assert advance_streak(StreakState(4, "2024-06-15"), "2024-06-16") == StreakState(
        5, "2024-06-16"
    )


def test_gap_resets_streak() -> None:
    assert advance_streak(StreakState(4, "2024-06-15"), "2024-06-18") == StreakState(
        1, "2024-06-18"
    )


def test_backdated_log_resets_streak() -> None:
    assert advance_streak(StreakState(4, "2024-06-15"), "2024-06-10") == StreakState(
        1, "2024-06-10"
    )


def test_month_boundary_counts_as_consecutive() -> None:
    state = advance_streak(StreakState(2, "2024-02-29"), "2024-03-01")

    assert state == StreakState(3, "2024-03-01")


def test_streak_from_dates_counts_run_ending_today() -> None:
    dates = ["2024-06-15", "2024-06-14", "2024-06-13", "2024-06-11", "2024-06-15"]

    assert streak_from_dates(dates, "2024-06-15") == StreakState(3, "2024-06-15")


def test_streak_from_dates_allows_run_ending_yesterday() -> None:
    dates = ["2024-06-14", "2024-06-13"]

    assert streak_from_dates(dates, "2024-06-15") == StreakState(2, "2024-06-14")


def test_streak_from_dates_broken_run_is_zero() -> None:
    state = streak_from_dates(["2024-06-12", "2024-06-11"], "2024-06-15")

    assert state == StreakState()


def test_zero_count_state_starts_fresh_streak() -> None:
    state = advance_streak(StreakState(0, "2024-06-10"), "2024-06-10")

    assert state == StreakState(1, "2024-06-10")


def test_streak_from_dates_ignores_future_and_empty() -> None:
    assert streak_from_dates([], "2024-06-15") == StreakState()
    assert streak_from_dates(["2024-06-20"], "2024-06-15") == StreakState()


def test_record_meal_uses_local_date(resolver) -> None:
    repository = InMemoryStreakRepository()
    service = StreakService(repository, resolver)

    # 02:00 UTC on the 15th is still the 14th in Los Angeles.
    service.record_meal(
        "user-1", datetime(2024, 6, 15, 2, 0, tzinfo=UTC), "America/Los_Angeles"
    )
    counter = service.record_meal(
        "user-1", datetime(2024, 6, 15, 18, 0, tzinfo=UTC), "America/Los_Angeles"
    )

    assert counter.state == StreakState(2, "2024-06-15")
    assert service.current_streak("user-1") == 2


def test_record_meal_same_day_skips_write(resolver) -> None:
    repository = InMemoryStreakRepository()
    service = StreakService(repository, resolver)
    instant = datetime(2024, 6, 15, 9, 0, tzinfo=UTC)

    service.record_meal("user-1", instant, "UTC")
    service.record_meal("user-1", instant, "UTC")

    assert repository.saves == 1
    assert service.current_streak("user-1") == 1


def test_current_streak_is_zero_without_counter(resolver) -> None:
    service = StreakService(InMemoryStreakRepository(), resolver)

    assert service.current_streak("nobody") == 0
    assert service.get_counter("nobody") is None


@dataclass
class RacingStreakRepository(InMemoryStreakRepository):
    """Lets another writer extend the streak just before the first write."""

    rival_state: StreakState | None = None
    conflicts: int = 0

    def replace_counter(
        self, user_id: str, expected: StreakState, state: StreakState
    ) -> StreakCounter | None:
        if self.rival_state is not None:
            self.save_counter(user_id, self.rival_state)
            self.rival_state = None
        stored = super().replace_counter(user_id, expected, state)
        if stored is None:
            self.conflicts += 1
        return stored


def test_concurrent_write_is_retried_not_lost(resolver) -> None:
    repository = RacingStreakRepository()
    repository.save_counter("user-1", StreakState(3, "2024-06-13"))
    repository.rival_state = StreakState(4, "2024-06-14")
    service = StreakService(repository, resolver)

    counter = service.record_meal(
        "user-1", datetime(2024, 6, 15, 12, 0, tzinfo=UTC), "UTC"
    )

    assert repository.conflicts == 1
    assert counter.state == StreakState(5, "2024-06-15")


@dataclass
class LateCreateStreakRepository(InMemoryStreakRepository):
    """Another writer creates the counter between the read and the insert."""

    created_elsewhere: bool = False

    def create_counter(self, user_id: str, state: StreakState) -> StreakCounter | None:
        if not self.created_elsewhere:
            self.created_elsewhere = True
            self.save_counter(user_id, StreakState(1, "2024-06-14"))
            return None
        return super().create_counter(user_id, state)


def test_first_write_race_falls_back_to_update(resolver) -> None:
    repository = LateCreateStreakRepository()
    service = StreakService(repository, resolver)

    counter = service.record_meal(
        "user-1", datetime(2024, 6, 15, 12, 0, tzinfo=UTC), "UTC"
    )

    assert counter.state == StreakState(2, "2024-06-15")


@dataclass
class AlwaysConflictingStreakRepository(InMemoryStreakRepository):
    def replace_counter(
        self, user_id: str, expected: StreakState, state: StreakState
    ) -> StreakCounter | None:
        return None


def test_persistent_conflicts_raise_store_error(resolver) -> None:
    repository = AlwaysConflictingStreakRepository()
    repository.save_counter("user-1", StreakState(1, "2024-06-14"))
    service = StreakService(repository, resolver)

    with pytest.raises(StoreUnavailableError):
        service.record_meal("user-1", datetime(2024, 6, 15, 12, 0, tzinfo=UTC), "UTC")


def test_users_have_independent_counters(resolver) -> None:
    repository = InMemoryStreakRepository()
    service = StreakService(repository, resolver)
    instant = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)

    service.record_meal("user-1", instant, "UTC")
    service.record_meal("user-2", instant, "UTC")
    service.record_meal("user-2", datetime(2024, 6, 16, 12, 0, tzinfo=UTC), "UTC")

    assert service.current_streak("user-1") == 1
    assert service.current_streak("user-2") == 2


def test_rebuild_recomputes_from_history(resolver) -> None:
    repository = InMemoryStreakRepository()
    service = StreakService(repository, resolver)
    history = [
        datetime(2024, 6, 15, 8, 0, tzinfo=UTC),
        datetime(2024, 6, 13, 8, 0, tzinfo=UTC),
        datetime(2024, 6, 14, 8, 0, tzinfo=UTC),
        datetime(2024, 6, 10, 8, 0, tzinfo=UTC),
    ]

    counter = service.rebuild("user-1", history, "UTC")

    assert counter.state == StreakState(3, "2024-06-15")
    assert repository.counters["user-1"] == counter


def test_backdated_meal_after_stale_rebuild_counts(resolver) -> None:
    repository = InMemoryStreakRepository()
    service = StreakService(repository, resolver)

    rebuilt = service.rebuild("user-1", [datetime(2024, 6, 10, 8, tzinfo=UTC)], "UTC")
    service.record_meal("user-1", datetime(2024, 6, 10, 9, tzinfo=UTC), "UTC")

    assert rebuilt.state == StreakState()
    assert service.current_streak("user-1") == 1
