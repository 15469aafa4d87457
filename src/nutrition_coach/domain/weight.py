"""Domain models for weight tracking."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

LBS_PER_KG = 2.20462


class WeightUnit(str, Enum):
    """Unit hint stored alongside each weight snapshot."""

    KG = "kg"
    LBS = "lbs"


@dataclass(frozen=True)
class WeightSnapshot:
    """A stored weight measurement."""

    id: UUID
    user_id: str
    weight_value: float
    unit_hint: WeightUnit
    recorded_at: datetime

    @property
    def weight_kg(self) -> float:
        """Weight normalized to kilograms."""
        if self.unit_hint == WeightUnit.KG:
            return self.weight_value
        return self.weight_value / LBS_PER_KG


@dataclass(frozen=True)
class WeightTrendPoint:
    """One per-day point of a weight trend, normalized to kilograms."""

    date: str
    weight_kg: float
    original_value: float
    original_unit: WeightUnit


@dataclass(frozen=True)
class WeightTrendSummary:
    """Trend points with the derived delta and a display message."""

    points: list[WeightTrendPoint]
    delta_kg: float | None
    day_span: int
    message: str
