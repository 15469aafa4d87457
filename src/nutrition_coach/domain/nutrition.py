"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NutritionData:
    """Calories and rounded macros for a food, per the lookup's default serving."""

    calories: int
    protein_g: int | None = None
    carbs_g: int | None = None
    fat_g: int | None = None
