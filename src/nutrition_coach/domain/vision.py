"""Models for food detection and meal refinement."""

from pydantic import BaseModel, Field

from nutrition_coach.domain.meals import MealType
from nutrition_coach.domain.nutrition import NutritionData


class VisionItem(BaseModel):
    """Single food item recognized in an image."""

    name: str
    confidence: float = Field(ge=0.0, le=1.0)


class VisionExtract(BaseModel):
    """Structured output of the image recognition call."""

    items: list[VisionItem]


class DetectedItem(BaseModel):
    """Recognized food item with optional nutrition enrichment."""

    name: str
    confidence: int = Field(ge=0, le=100)
    nutrition: NutritionData | None = None


class FoodDetectionResult(BaseModel):
    """Outcome of analyzing a meal photo."""

    success: bool
    items: list[DetectedItem]
    message: str | None = None


class RefinedMeal(BaseModel):
    """Meal description suggested from detected items."""

    description: str
    total_calories: int
    suggested_meal_type: MealType
    confidence: int
