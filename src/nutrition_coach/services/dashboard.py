"""Dashboard composition with per-metric fallbacks."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from nutrition_coach.domain.dashboard import DashboardMetrics
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.meals import TodaysTotals
from nutrition_coach.services.stats import StatsService
from nutrition_coach.services.streaks import StreakService
from nutrition_coach.services.weight import WeightService, summarize_trend

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DashboardService:
    """Fan out the dashboard reads and degrade each one independently."""

    stats_service: StatsService
    streak_service: StreakService
    weight_service: WeightService
    metric_timeout_seconds: float = 5.0

    async def get_metrics(self, user_id: str, timezone_name: str) -> DashboardMetrics:
        """Return today's totals, streak and weight trend for the user.

        A bad timezone fails the whole request. A store outage or timeout on a
        single metric substitutes its empty value and names it in ``degraded``.
        """
        self.stats_service.resolver.zone(timezone_name)
        degraded: list[str] = []
        totals, streak, trend = await asyncio.gather(
            self._metric(
                "totals",
                lambda: self.stats_service.todays_totals(user_id, timezone_name),
                TodaysTotals(),
                degraded,
            ),
            self._metric(
                "streak",
                lambda: self.streak_service.current_streak(user_id),
                0,
                degraded,
            ),
            self._metric(
                "weight_trend",
                lambda: self.weight_service.trend(user_id, timezone_name),
                summarize_trend([]),
                degraded,
            ),
        )
        return DashboardMetrics(
            totals=totals,
            current_streak=streak,
            weight_trend=trend,
            degraded=sorted(degraded),
        )

    async def _metric(
        self,
        name: str,
        read: Callable[[], T],
        fallback: T,
        degraded: list[str],
    ) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(read), timeout=self.metric_timeout_seconds
            )
        except (StoreUnavailableError, TimeoutError) as exc:
            _logger.warning("Dashboard metric %s degraded: %s", name, exc)
            degraded.append(name)
            return fallback
