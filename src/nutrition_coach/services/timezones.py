"""Timezone-aware calendar day resolution.

Every day-bucketed figure in the application (daily summaries, today's totals,
streaks, weight trends) is computed against the user's local calendar rather
than UTC. This module is the single place where instants become dates.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nutrition_coach.domain.errors import InvalidTimezoneError, ValidationError

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class TimezoneResolver:
    """Map instants to local calendar dates for IANA timezones."""

    clock: Callable[[], datetime] = field(default=_utc_now)
    allow_utc_fallback: bool = False

    def zone(self, timezone_name: str | None) -> ZoneInfo:
        """Return the zone for a name or raise InvalidTimezoneError."""
        if not timezone_name or not timezone_name.strip():
            raise ValidationError("Timezone is required")
        try:
            return ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            if not self.allow_utc_fallback:
                raise InvalidTimezoneError(timezone_name) from exc
            _logger.warning(
                "Unknown timezone %r, falling back to UTC", timezone_name
            )
            return ZoneInfo("UTC")

    def now(self) -> datetime:
        """Return the current instant as reported by the clock."""
        return self.clock()

    def today_in(self, timezone_name: str) -> str:
        """Return today's date (YYYY-MM-DD) as observed in the timezone."""
        return self.date_in(self.clock(), timezone_name)

    def date_in(self, instant: datetime, timezone_name: str) -> str:
        """Return the date (YYYY-MM-DD) an instant falls on in the timezone."""
        return local_date(instant, self.zone(timezone_name)).isoformat()


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    """Return the calendar date of an instant in a resolved zone."""
    if instant.tzinfo is None:
        # Stored instants without an offset are UTC.
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(tz).date()


def parse_date_string(value: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    if not _DATE_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def next_day(value: str) -> str:
    """Return the calendar day after a YYYY-MM-DD date."""
    return (parse_date_string(value) + timedelta(days=1)).isoformat()


def shift_days(value: str, days: int) -> str:
    """Return the date the given number of days away."""
    return (parse_date_string(value) + timedelta(days=days)).isoformat()


def day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the UTC instants of local midnight on ``day`` and the day after."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)
