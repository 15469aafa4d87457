"""Request models and response payload helpers for the HTTP API."""

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from nutrition_coach.domain.dashboard import DashboardMetrics
from nutrition_coach.domain.meals import DailySummary, MealEntry, MealType
from nutrition_coach.domain.profile import (
    ActivityLevel,
    Allergy,
    AllergySeverity,
    BiologicalSex,
    DietaryRestrictions,
    GoalType,
    HealthGoal,
    HealthProfile,
    OnboardingProgress,
)
from nutrition_coach.domain.streaks import StreakCounter
from nutrition_coach.domain.vision import DetectedItem
from nutrition_coach.domain.weight import (
    WeightSnapshot,
    WeightTrendPoint,
    WeightTrendSummary,
    WeightUnit,
)

MAX_DESCRIPTION_LENGTH = 500
MAX_CALORIES = 10000
MAX_WEIGHT = 500
MAX_ALLERGEN_LENGTH = 100
NAME_PATTERN = r"^[a-zA-Z\s'-]+$"


class MealCreateRequest(BaseModel):
    """Body for logging a meal."""

    description: str
    meal_type: MealType
    calories: int | None = Field(default=None, ge=0, le=MAX_CALORIES)
    consumed_at: AwareDatetime | None = None
    timezone: str

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Description is required")
        if len(stripped) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
            )
        return stripped


class WeightCreateRequest(BaseModel):
    """Body for logging a weight snapshot."""

    weight_value: float = Field(gt=0, le=MAX_WEIGHT)
    weight_unit_hint: WeightUnit
    recorded_at: AwareDatetime | None = None
    timezone: str

    @field_validator("weight_value")
    @classmethod
    def _two_decimals(cls, value: float) -> float:
        if round(value, 2) != value:
            raise ValueError("Weight must have at most 2 decimal places")
        return value


class TipRequest(BaseModel):
    """Body for generating a nutrition tip."""

    health_goal: str | None = None


class AnalyzeRequest(BaseModel):
    """Body for analyzing a meal photo."""

    image_base64: str


class RefineRequest(BaseModel):
    """Body for turning detected items into a meal description."""

    items: list[DetectedItem]
    current_time: AwareDatetime | None = None
    timezone: str | None = None


class HealthProfileRequest(BaseModel):
    """Body for the health profile step; height in cm and weights in kg."""

    full_name: str = Field(min_length=2, max_length=100, pattern=NAME_PATTERN)
    age: int = Field(ge=13, le=120)
    biological_sex: BiologicalSex
    height_cm: float = Field(ge=50, le=300)
    weight_kg: float = Field(ge=20, le=MAX_WEIGHT)
    target_weight_kg: float | None = Field(default=None, ge=20, le=MAX_WEIGHT)
    activity_level: ActivityLevel
    consent_given: bool

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    def to_profile(self, user_id: str) -> HealthProfile:
        return HealthProfile(
            user_id=user_id,
            full_name=self.full_name,
            age=self.age,
            biological_sex=self.biological_sex,
            height_cm=self.height_cm,
            weight_kg=self.weight_kg,
            target_weight_kg=self.target_weight_kg,
            activity_level=self.activity_level,
            consent_given=self.consent_given,
        )


class GoalRequest(BaseModel):
    goal_type: GoalType
    is_primary: bool = False
    priority_rank: int = Field(default=0, ge=0)


class HealthGoalsRequest(BaseModel):
    """Body for the goal selection step."""

    goals: list[GoalRequest] = Field(min_length=1, max_length=10)

    def to_goals(self) -> list[HealthGoal]:
        return [
            HealthGoal(
                goal_type=goal.goal_type,
                is_primary=goal.is_primary,
                priority_rank=goal.priority_rank,
            )
            for goal in self.goals
        ]


class AllergyRequest(BaseModel):
    allergen_name: str = Field(min_length=1, max_length=MAX_ALLERGEN_LENGTH)
    severity_level: AllergySeverity

    @field_validator("allergen_name", mode="before")
    @classmethod
    def _strip_allergen(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class DietaryRestrictionsRequest(BaseModel):
    """Body for the dietary restrictions step."""

    diet_type: str | None = None
    custom_restrictions_text: str | None = Field(
        default=None, max_length=MAX_DESCRIPTION_LENGTH
    )
    allergies: list[AllergyRequest] = Field(default_factory=list)

    def to_restrictions(self) -> DietaryRestrictions:
        return DietaryRestrictions(
            diet_type=self.diet_type or None,
            custom_restrictions_text=self.custom_restrictions_text or None,
            allergies=tuple(
                Allergy(
                    allergen_name=allergy.allergen_name,
                    severity_level=allergy.severity_level,
                )
                for allergy in self.allergies
            ),
        )


class TutorialRequest(BaseModel):
    completed: bool = True


def meal_payload(meal: MealEntry) -> dict[str, object]:
    """Serialize a meal entry."""
    return {
        "id": str(meal.id),
        "user_id": meal.user_id,
        "meal_type": meal.meal_type.value,
        "description": meal.description,
        "calories": meal.calories,
        "consumed_at": meal.consumed_at.isoformat(),
        "created_at": meal.created_at.isoformat(),
    }


def summary_payload(summary: DailySummary) -> dict[str, object]:
    """Serialize a daily summary."""
    return {
        "date": summary.date,
        "meal_count": summary.meal_count,
        "total_calories": summary.total_calories,
        "is_today": summary.is_today,
    }


def weight_payload(snapshot: WeightSnapshot) -> dict[str, object]:
    """Serialize a weight snapshot."""
    return {
        "id": str(snapshot.id),
        "user_id": snapshot.user_id,
        "weight_value": snapshot.weight_value,
        "weight_unit_hint": snapshot.unit_hint.value,
        "recorded_at": snapshot.recorded_at.isoformat(),
    }


def trend_point_payload(point: WeightTrendPoint) -> dict[str, object]:
    """Serialize a weight trend point."""
    return {
        "date": point.date,
        "weight_kg": round(point.weight_kg, 2),
        "original_value": point.original_value,
        "original_unit": point.original_unit.value,
    }


def trend_payload(summary: WeightTrendSummary) -> dict[str, object]:
    """Serialize a weight trend summary."""
    return {
        "points": [trend_point_payload(point) for point in summary.points],
        "delta_kg": _round_optional(summary.delta_kg),
        "day_span": summary.day_span,
        "message": summary.message,
    }


def dashboard_payload(metrics: DashboardMetrics) -> dict[str, object]:
    """Serialize dashboard metrics."""
    return {
        "calories_today": metrics.totals.calories_today,
        "entries_today": metrics.totals.entries_today,
        "current_streak": metrics.current_streak,
        "weight_trend_7d": [
            trend_point_payload(point) for point in metrics.weight_trend.points
        ],
        "weight_delta_7d": _round_optional(metrics.weight_trend.delta_kg),
        "weight_trend_message": metrics.weight_trend.message,
        "degraded": metrics.degraded,
    }


def streak_counter_payload(counter: StreakCounter) -> dict[str, object]:
    """Serialize a streak counter record."""
    return {
        "user_id": counter.user_id,
        "current_streak_days": counter.state.current_streak_days,
        "last_logged_date": counter.state.last_logged_date,
        "updated_at": counter.updated_at.isoformat() if counter.updated_at else None,
    }


def profile_payload(profile: HealthProfile) -> dict[str, object]:
    """Serialize a health profile."""
    return {
        "user_id": profile.user_id,
        "full_name": profile.full_name,
        "age": profile.age,
        "biological_sex": profile.biological_sex.value,
        "height_cm": round(profile.height_cm, 1),
        "weight_kg": round(profile.weight_kg, 2),
        "target_weight_kg": _round_optional(profile.target_weight_kg),
        "activity_level": profile.activity_level.value,
        "consent_given": profile.consent_given,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


def goal_payload(goal: HealthGoal) -> dict[str, object]:
    """Serialize a health goal."""
    return {
        "goal_type": goal.goal_type.value,
        "display_name": goal.display_name,
        "is_primary": goal.is_primary,
        "priority_rank": goal.priority_rank,
    }


def restrictions_payload(restrictions: DietaryRestrictions) -> dict[str, object]:
    """Serialize dietary restrictions with their allergies."""
    return {
        "diet_type": restrictions.diet_type,
        "custom_restrictions_text": restrictions.custom_restrictions_text,
        "allergies": [
            {
                "allergen_name": allergy.allergen_name,
                "severity_level": allergy.severity_level.value,
            }
            for allergy in restrictions.allergies
        ],
    }


def progress_payload(progress: OnboardingProgress) -> dict[str, object]:
    """Serialize onboarding progress."""
    return {
        "steps_completed": progress.steps_completed,
        "current_step": progress.current_step,
        "progress_percentage": progress.progress_percentage,
        "onboarding_completed": progress.onboarding_completed,
    }


def _round_optional(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None
