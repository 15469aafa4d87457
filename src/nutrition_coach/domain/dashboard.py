"""Dashboard read models."""

from dataclasses import dataclass, field

from nutrition_coach.domain.meals import TodaysTotals
from nutrition_coach.domain.weight import WeightTrendSummary


@dataclass(frozen=True)
class DashboardMetrics:
    """Metrics assembled for a single dashboard load."""

    totals: TodaysTotals
    current_streak: int
    weight_trend: WeightTrendSummary
    degraded: list[str] = field(default_factory=list)
