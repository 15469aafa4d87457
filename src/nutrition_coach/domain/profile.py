"""Domain models for onboarding: health profile, goals and dietary preferences."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from nutrition_coach.domain.weight import LBS_PER_KG, WeightUnit

CM_PER_INCH = 2.54


class BiologicalSex(str, Enum):
    """Biological sex recorded in the health profile."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    """Self-reported weekly activity."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class LengthUnit(str, Enum):
    """Unit a stored height was entered in."""

    CM = "cm"
    IN = "in"


class GoalType(str, Enum):
    """Health goals a user can pick during onboarding."""

    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MAINTAIN_WEIGHT = "maintain_weight"
    BUILD_MUSCLE = "build_muscle"
    IMPROVE_ENERGY = "improve_energy"
    BETTER_DIGESTION = "better_digestion"
    HEART_HEALTH = "heart_health"
    MANAGE_BLOOD_SUGAR = "manage_blood_sugar"
    ATHLETIC_PERFORMANCE = "athletic_performance"
    GENERAL_WELLNESS = "general_wellness"


GOAL_DISPLAY_NAMES: dict[GoalType, str] = {
    GoalType.WEIGHT_LOSS: "Weight Loss",
    GoalType.WEIGHT_GAIN: "Muscle Gain",
    GoalType.MAINTAIN_WEIGHT: "General Wellness",
    GoalType.BUILD_MUSCLE: "Muscle Gain",
    GoalType.IMPROVE_ENERGY: "Better Energy",
    GoalType.BETTER_DIGESTION: "Improved Digestion",
    GoalType.HEART_HEALTH: "Heart Health",
    GoalType.MANAGE_BLOOD_SUGAR: "Blood Sugar Control",
    GoalType.ATHLETIC_PERFORMANCE: "Athletic Performance",
    GoalType.GENERAL_WELLNESS: "General Wellness",
}


class AllergySeverity(str, Enum):
    """How strongly a user reacts to an allergen."""

    SEVERE = "severe"
    MODERATE = "moderate"
    INTOLERANCE = "intolerance"


@dataclass(frozen=True)
class HealthProfile:
    """Onboarding health profile, normalized to centimeters and kilograms."""

    user_id: str
    full_name: str
    age: int
    biological_sex: BiologicalSex
    height_cm: float
    weight_kg: float
    target_weight_kg: float | None
    activity_level: ActivityLevel
    consent_given: bool
    updated_at: datetime | None = None


@dataclass(frozen=True)
class HealthGoal:
    """A selected goal; at most one per user is primary."""

    goal_type: GoalType
    is_primary: bool = False
    priority_rank: int = 0

    @property
    def display_name(self) -> str:
        return GOAL_DISPLAY_NAMES[self.goal_type]


@dataclass(frozen=True)
class Allergy:
    allergen_name: str
    severity_level: AllergySeverity


@dataclass(frozen=True)
class DietaryRestrictions:
    """Diet type, free-text restrictions and declared allergies."""

    diet_type: str | None = None
    custom_restrictions_text: str | None = None
    allergies: tuple[Allergy, ...] = ()


@dataclass(frozen=True)
class OnboardingProgress:
    """How far through the four onboarding steps a user is."""

    steps_completed: int
    current_step: int
    progress_percentage: int
    onboarding_completed: bool


def length_in_cm(value: float, unit: LengthUnit) -> float:
    """Convert a stored height to centimeters."""
    if unit == LengthUnit.CM:
        return value
    return value * CM_PER_INCH


def mass_in_kg(value: float, unit: WeightUnit) -> float:
    """Convert a stored body weight to kilograms."""
    if unit == WeightUnit.KG:
        return value
    return value / LBS_PER_KG
