"""Weight logging and trailing-window trends."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Protocol

from nutrition_coach.domain.errors import ValidationError
from nutrition_coach.domain.weight import (
    WeightSnapshot,
    WeightTrendPoint,
    WeightTrendSummary,
    WeightUnit,
)
from nutrition_coach.services.timezones import (
    TimezoneResolver,
    day_bounds,
    local_date,
)

DEFAULT_WINDOW_DAYS = 7


class WeightRepository(Protocol):
    """Persistence interface for weight snapshots."""

    def insert_weight(
        self,
        user_id: str,
        weight_value: float,
        unit_hint: WeightUnit,
        recorded_at: datetime | None = None,
    ) -> WeightSnapshot:
        """Store a snapshot; ``recorded_at`` defaults to now."""

    def list_weights_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[WeightSnapshot]:
        """Return snapshots with start <= recorded_at < end, oldest first."""


@dataclass
class WeightService:
    """Service for weight snapshots and trends."""

    repository: WeightRepository
    resolver: TimezoneResolver = field(default_factory=TimezoneResolver)

    def log_weight(
        self,
        user_id: str,
        weight_value: float,
        unit_hint: WeightUnit,
        timezone_name: str,
        recorded_at: datetime | None = None,
    ) -> WeightSnapshot:
        """Persist a weight snapshot with its own unit hint."""
        self.resolver.zone(timezone_name)
        return self.repository.insert_weight(
            user_id=user_id,
            weight_value=weight_value,
            unit_hint=unit_hint,
            recorded_at=recorded_at,
        )

    def trend(
        self,
        user_id: str,
        timezone_name: str,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> WeightTrendSummary:
        """Return the trailing weight trend with delta and message."""
        tz = self.resolver.zone(timezone_name)
        _validate_window(window_days)
        today = local_date(self.resolver.now(), tz)
        start, _ = day_bounds(today - timedelta(days=window_days - 1), tz)
        _, end = day_bounds(today, tz)
        weights = self.repository.list_weights_between(user_id, start, end)
        points = weight_trend(weights, timezone_name, self.resolver, window_days)
        return summarize_trend(points)


def weight_trend(
    weights: Iterable[WeightSnapshot],
    timezone_name: str,
    resolver: TimezoneResolver,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[WeightTrendPoint]:
    """Return one kilogram-normalized point per local date, oldest first.

    Only the trailing ``window_days`` local dates ending today are included,
    and days without a snapshot are left out rather than zero-filled. When a
    day has several snapshots the one recorded last wins.
    """
    _validate_window(window_days)
    tz = resolver.zone(timezone_name)
    today = local_date(resolver.now(), tz)
    window_start = today - timedelta(days=window_days - 1)

    latest: dict[date, WeightSnapshot] = {}
    for snapshot in weights:
        day = local_date(snapshot.recorded_at, tz)
        if day < window_start or day > today:
            continue
        current = latest.get(day)
        if current is None or snapshot.recorded_at >= current.recorded_at:
            latest[day] = snapshot

    return [
        WeightTrendPoint(
            date=day.isoformat(),
            weight_kg=latest[day].weight_kg,
            original_value=latest[day].weight_value,
            original_unit=latest[day].unit_hint,
        )
        for day in sorted(latest)
    ]


def weight_delta(points: list[WeightTrendPoint]) -> float | None:
    """Return newest minus oldest weight in kg, or None below two points."""
    if len(points) < 2:  # noqa: PLR2004
        return None
    ordered = sorted(points, key=lambda point: point.date)
    return ordered[-1].weight_kg - ordered[0].weight_kg


def summarize_trend(points: list[WeightTrendPoint]) -> WeightTrendSummary:
    """Attach the delta, day span and a display message to trend points."""
    ordered = sorted(points, key=lambda point: point.date)
    delta = weight_delta(ordered)
    if not ordered:
        return WeightTrendSummary(
            points=[], delta_kg=None, day_span=0, message="No weight logged yet."
        )
    if delta is None:
        only = ordered[0]
        return WeightTrendSummary(
            points=ordered,
            delta_kg=None,
            day_span=0,
            message=(
                f"{only.original_value:g} {only.original_unit.value} logged on "
                f"{only.date}. Log another day to see your trend."
            ),
        )
    span = (
        date.fromisoformat(ordered[-1].date) - date.fromisoformat(ordered[0].date)
    ).days
    day_label = "day" if span == 1 else "days"
    return WeightTrendSummary(
        points=ordered,
        delta_kg=delta,
        day_span=span,
        message=f"{delta:+.1f} kg over {span} {day_label}",
    )


def _validate_window(window_days: int) -> None:
    if window_days < 1:
        raise ValidationError("Trend window must be at least 1 day")
