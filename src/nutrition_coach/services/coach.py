"""LLM-backed coaching helpers with fallbacks.

None of these calls may block meal or weight logging: tips and meal
descriptions fall back to fixed text, and calorie estimation raises
ExternalServiceDegradedError for the caller to absorb.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from nutrition_coach.domain.errors import ExternalServiceDegradedError, ValidationError
from nutrition_coach.domain.meals import MealType
from nutrition_coach.domain.vision import DetectedItem, RefinedMeal

FALLBACK_TIP = "Stay hydrated and eat balanced meals throughout the day."
FALLBACK_CONFIDENCE = 50
MAX_ESTIMATED_CALORIES = 10000

_TIP_SYSTEM_PROMPT = (
    "You are a helpful nutrition coach. Provide concise, actionable nutrition "
    "tips in 1-2 sentences. Focus on practical advice that users can implement "
    "immediately."
)
_MEAL_SYSTEM_PROMPT = (
    "You are a helpful nutrition assistant that creates natural meal descriptions."
)
_CALORIE_SYSTEM_PROMPT = (
    "You are a nutrition assistant. Estimate the total calories of the meal the "
    "user describes. Reply with a single integer and nothing else."
)
_NUMBER_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")

_logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """Interface for single-turn LLM chat completions."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the completion text."""


@dataclass
class CoachService:
    """Generate tips, meal descriptions and calorie estimates."""

    client: ChatClient
    tip_model: str
    meal_model: str

    async def generate_tip(self, health_goal: str) -> str:
        """Return a short tip for a health goal, or a generic tip on failure."""
        goal = health_goal.strip()
        if not goal:
            raise ValidationError("Health goal is required")
        try:
            tip = await self.client.complete(
                model=self.tip_model,
                system_prompt=_TIP_SYSTEM_PROMPT,
                user_prompt=(
                    f"Generate a nutrition tip for someone whose goal is: {goal}"
                ),
                temperature=0.7,
                max_tokens=150,
            )
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Tip generation failed, using fallback tip: %s", exc)
            return FALLBACK_TIP
        if not tip:
            _logger.warning("Tip generation returned empty text, using fallback tip")
            return FALLBACK_TIP
        return tip

    async def estimate_calories(self, description: str) -> int:
        """Estimate calories for a meal description."""
        try:
            reply = await self.client.complete(
                model=self.meal_model,
                system_prompt=_CALORIE_SYSTEM_PROMPT,
                user_prompt=description,
                temperature=0.2,
                max_tokens=20,
            )
        except Exception as exc:
            raise ExternalServiceDegradedError(
                f"Calorie estimation failed: {exc}"
            ) from exc
        return _parse_calories(reply)

    async def refine_detection(
        self, items: list[DetectedItem], current_time: datetime
    ) -> RefinedMeal:
        """Turn detected items into a meal description and suggested type."""
        meal_type = suggest_meal_type(current_time.hour)
        names = ", ".join(item.name for item in items)
        total_calories = sum(
            item.nutrition.calories for item in items if item.nutrition is not None
        )
        confidence = (
            round(sum(item.confidence for item in items) / len(items)) if items else 0
        )
        prompt = (
            "You are a nutrition assistant. Based on the following detected food "
            "items, create a natural meal description (1-2 sentences).\n\n"
            f"Detected items: {names}\n"
            f"Time of day: {current_time.hour}:00 "
            f"(suggested meal type: {meal_type.value})\n"
            f"Total estimated calories: {total_calories}\n\n"
            "Create a concise, natural description that sounds like a person "
            "describing their meal. Do not include calories in the description.\n\n"
            'Example: "Grilled chicken breast with steamed broccoli and brown rice"\n\n'
            "Return ONLY the description, nothing else."
        )
        try:
            description = await self.client.complete(
                model=self.meal_model,
                system_prompt=_MEAL_SYSTEM_PROMPT,
                user_prompt=prompt,
                temperature=0.7,
                max_tokens=100,
            )
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Meal refinement failed, using item names: %s", exc)
            description = ""
        if not description:
            return RefinedMeal(
                description=names,
                total_calories=round(total_calories),
                suggested_meal_type=meal_type,
                confidence=FALLBACK_CONFIDENCE,
            )
        return RefinedMeal(
            description=description,
            total_calories=round(total_calories),
            suggested_meal_type=meal_type,
            confidence=confidence,
        )


def suggest_meal_type(hour: int) -> MealType:
    """Suggest a meal type from the local hour of day."""
    if 6 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 16:  # noqa: PLR2004
        return MealType.LUNCH
    if 16 <= hour < 22:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK


def _parse_calories(reply: str) -> int:
    match = _NUMBER_PATTERN.search(reply or "")
    if match is None:
        raise ExternalServiceDegradedError(
            f"Calorie estimate had no number: {reply!r}"
        )
    value = round(float(match.group().replace(",", "")))
    if value > MAX_ESTIMATED_CALORIES:
        raise ExternalServiceDegradedError(f"Calorie estimate out of range: {value}")
    return value
