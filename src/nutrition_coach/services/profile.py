"""Onboarding profile, goals and dietary preferences."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from nutrition_coach.domain.errors import ValidationError
from nutrition_coach.domain.profile import (
    DietaryRestrictions,
    HealthGoal,
    HealthProfile,
    OnboardingProgress,
)

_logger = logging.getLogger(__name__)

ONBOARDING_STEPS = 4
MAX_GOALS = 10


class ProfileRepository(Protocol):
    """Persistence interface for onboarding data."""

    def get_profile(self, user_id: str) -> HealthProfile | None:
        """Return the user's health profile, if saved."""

    def save_profile(self, profile: HealthProfile) -> HealthProfile:
        """Create or replace the user's health profile."""

    def list_goals(self, user_id: str) -> list[HealthGoal]:
        """Return the user's goals by priority rank."""

    def replace_goals(self, user_id: str, goals: list[HealthGoal]) -> list[HealthGoal]:
        """Replace every goal of the user with ``goals``."""

    def get_primary_goal(self, user_id: str) -> HealthGoal | None:
        """Return the goal marked primary, if any."""

    def get_restrictions(self, user_id: str) -> DietaryRestrictions | None:
        """Return the user's dietary restrictions, if declared."""

    def save_restrictions(
        self, user_id: str, restrictions: DietaryRestrictions
    ) -> DietaryRestrictions:
        """Create or replace restrictions and their allergies."""

    def record_tutorial(self, user_id: str, completed: bool) -> None:
        """Record that the tutorial was finished or skipped."""

    def has_tutorial_record(self, user_id: str) -> bool:
        """Return whether the tutorial step was ever recorded."""


@dataclass
class ProfileService:
    """Service for the onboarding steps and their stored answers."""

    repository: ProfileRepository

    def profile(self, user_id: str) -> HealthProfile | None:
        return self.repository.get_profile(user_id)

    def save_profile(self, profile: HealthProfile) -> HealthProfile:
        """Store the health profile once consent is given."""
        if not profile.consent_given:
            raise ValidationError("Consent must be given to continue")
        return self.repository.save_profile(profile)

    def goals(self, user_id: str) -> list[HealthGoal]:
        return self.repository.list_goals(user_id)

    def set_goals(self, user_id: str, goals: list[HealthGoal]) -> list[HealthGoal]:
        """Replace the user's goals.

        Between one and ten distinct goals are accepted and at most one may be
        primary. When none is marked primary the first goal becomes primary.
        """
        if not goals:
            raise ValidationError("At least one goal is required")
        if len(goals) > MAX_GOALS:
            raise ValidationError(f"You can select up to {MAX_GOALS} goals")
        if len({goal.goal_type for goal in goals}) != len(goals):
            raise ValidationError("Goals must not repeat")
        primaries = [goal for goal in goals if goal.is_primary]
        if len(primaries) > 1:
            raise ValidationError("Only one goal can be primary")
        if not primaries:
            goals = [replace(goals[0], is_primary=True), *goals[1:]]
        return self.repository.replace_goals(user_id, goals)

    def primary_goal(self, user_id: str) -> HealthGoal | None:
        return self.repository.get_primary_goal(user_id)

    def restrictions(self, user_id: str) -> DietaryRestrictions | None:
        return self.repository.get_restrictions(user_id)

    def save_restrictions(
        self, user_id: str, restrictions: DietaryRestrictions
    ) -> DietaryRestrictions:
        """Store dietary restrictions, replacing any earlier allergies."""
        names = [allergy.allergen_name.casefold() for allergy in restrictions.allergies]
        if len(set(names)) != len(names):
            raise ValidationError("Allergens must not repeat")
        return self.repository.save_restrictions(user_id, restrictions)

    def complete_tutorial(self, user_id: str, completed: bool = True) -> None:
        """Record the last onboarding step, finished or skipped."""
        self.repository.record_tutorial(user_id, completed)
        _logger.info(
            "Onboarding tutorial recorded",
            extra={"user_id": user_id, "completed": completed},
        )

    def progress(self, user_id: str) -> OnboardingProgress:
        """Return progress through the steps, counted in order."""
        steps = (
            lambda: self.repository.get_profile(user_id) is not None,
            lambda: bool(self.repository.list_goals(user_id)),
            lambda: self.repository.get_restrictions(user_id) is not None,
            lambda: self.repository.has_tutorial_record(user_id),
        )
        completed = 0
        for step_done in steps:
            if not step_done():
                break
            completed += 1
        return OnboardingProgress(
            steps_completed=completed,
            current_step=min(completed + 1, ONBOARDING_STEPS),
            progress_percentage=completed * 100 // ONBOARDING_STEPS,
            onboarding_completed=completed == ONBOARDING_STEPS,
        )
