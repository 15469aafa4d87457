"""Supabase repository for onboarding profile data."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrition_coach.adapters.supabase_query import execute_query, parse_timestamp
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.profile import (
    ActivityLevel,
    Allergy,
    AllergySeverity,
    BiologicalSex,
    DietaryRestrictions,
    GoalType,
    HealthGoal,
    HealthProfile,
    LengthUnit,
    length_in_cm,
    mass_in_kg,
)
from nutrition_coach.domain.weight import WeightUnit
from nutrition_coach.services.profile import ProfileRepository

_PROFILE_COLUMNS = (
    "user_id, full_name, age, biological_sex, height_value, height_unit, "
    "current_weight_value, current_weight_unit, target_weight_value, "
    "target_weight_unit, activity_level, consent_accepted, updated_at"
)
_GOAL_COLUMNS = "goal_type, is_primary, priority_rank"
_RESTRICTION_COLUMNS = "restriction_id, diet_type, custom_restrictions_text"


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation over the onboarding tables."""

    client: Client

    def get_profile(self, user_id: str) -> HealthProfile | None:
        rows = execute_query(
            self.client.table("health_profile")
            .select(_PROFILE_COLUMNS)
            .eq("user_id", user_id)
            .limit(1),
            "load health profile",
        )
        if not rows:
            return None
        return _parse_profile(rows[0])

    def save_profile(self, profile: HealthProfile) -> HealthProfile:
        """Upsert the profile; values are stored in centimeters and kilograms."""
        now = datetime.now(tz=UTC).isoformat()
        target = profile.target_weight_kg
        payload = {
            "user_id": profile.user_id,
            "full_name": profile.full_name,
            "age": profile.age,
            "biological_sex": profile.biological_sex.value,
            "height_value": profile.height_cm,
            "height_unit": LengthUnit.CM.value,
            "current_weight_value": profile.weight_kg,
            "current_weight_unit": WeightUnit.KG.value,
            "target_weight_value": target,
            "target_weight_unit": WeightUnit.KG.value if target is not None else None,
            "activity_level": profile.activity_level.value,
            "consent_accepted": profile.consent_given,
            "consent_accepted_at": now,
            "updated_at": now,
        }
        rows = execute_query(
            self.client.table("health_profile").upsert(payload, on_conflict="user_id"),
            "save health profile",
        )
        if not rows:
            raise StoreUnavailableError(
                "Failed to save health profile: no row returned"
            )
        return _parse_profile(rows[0])

    def list_goals(self, user_id: str) -> list[HealthGoal]:
        rows = execute_query(
            self.client.table("health_goals")
            .select(_GOAL_COLUMNS)
            .eq("user_id", user_id)
            .order("priority_rank", desc=False),
            "list health goals",
        )
        return [_parse_goal(row) for row in rows]

    def replace_goals(self, user_id: str, goals: list[HealthGoal]) -> list[HealthGoal]:
        """Delete the user's goals, then insert the new selection."""
        execute_query(
            self.client.table("health_goals").delete().eq("user_id", user_id),
            "clear health goals",
        )
        selected_at = datetime.now(tz=UTC).isoformat()
        payload = [
            {
                "user_id": user_id,
                "goal_type": goal.goal_type.value,
                "is_primary": goal.is_primary,
                "priority_rank": goal.priority_rank,
                "selected_at": selected_at,
            }
            for goal in goals
        ]
        rows = execute_query(
            self.client.table("health_goals").insert(payload), "save health goals"
        )
        return [_parse_goal(row) for row in rows]

    def get_primary_goal(self, user_id: str) -> HealthGoal | None:
        rows = execute_query(
            self.client.table("health_goals")
            .select(_GOAL_COLUMNS)
            .eq("user_id", user_id)
            .eq("is_primary", True)
            .limit(1),
            "load primary goal",
        )
        if not rows:
            return None
        return _parse_goal(rows[0])

    def get_restrictions(self, user_id: str) -> DietaryRestrictions | None:
        rows = execute_query(
            self.client.table("dietary_restrictions")
            .select(_RESTRICTION_COLUMNS)
            .eq("user_id", user_id)
            .limit(1),
            "load dietary restrictions",
        )
        if not rows:
            return None
        allergy_rows = execute_query(
            self.client.table("allergy_details")
            .select("allergen_name, severity_level")
            .eq("restriction_id", rows[0]["restriction_id"]),
            "list allergies",
        )
        return _parse_restrictions(rows[0], allergy_rows)

    def save_restrictions(
        self, user_id: str, restrictions: DietaryRestrictions
    ) -> DietaryRestrictions:
        """Upsert the restriction row and replace its allergy rows."""
        rows = execute_query(
            self.client.table("dietary_restrictions").upsert(
                {
                    "user_id": user_id,
                    "diet_type": restrictions.diet_type,
                    "custom_restrictions_text": restrictions.custom_restrictions_text,
                    "declared_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            ),
            "save dietary restrictions",
        )
        if not rows:
            raise StoreUnavailableError(
                "Failed to save dietary restrictions: no row returned"
            )
        restriction_id = rows[0]["restriction_id"]
        execute_query(
            self.client.table("allergy_details")
            .delete()
            .eq("restriction_id", restriction_id),
            "clear allergies",
        )
        allergy_rows: list[dict[str, object]] = []
        if restrictions.allergies:
            allergy_rows = execute_query(
                self.client.table("allergy_details").insert(
                    [
                        {
                            "restriction_id": restriction_id,
                            "allergen_name": allergy.allergen_name,
                            "severity_level": allergy.severity_level.value,
                        }
                        for allergy in restrictions.allergies
                    ]
                ),
                "save allergies",
            )
        return _parse_restrictions(rows[0], allergy_rows)

    def record_tutorial(self, user_id: str, completed: bool) -> None:
        execute_query(
            self.client.table("tutorial_completions").insert(
                {
                    "user_id": user_id,
                    "completed": completed,
                    "completed_at": datetime.now(tz=UTC).isoformat(),
                }
            ),
            "record tutorial",
        )

    def has_tutorial_record(self, user_id: str) -> bool:
        rows = execute_query(
            self.client.table("tutorial_completions")
            .select("completed")
            .eq("user_id", user_id)
            .limit(1),
            "load tutorial",
        )
        return bool(rows)


def _parse_profile(row: dict[str, object]) -> HealthProfile:
    try:
        height_unit = LengthUnit(str(row.get("height_unit") or "cm"))
        weight_unit = WeightUnit(str(row.get("current_weight_unit") or "kg"))
        target_raw = row.get("target_weight_value")
        target_kg = None
        if target_raw is not None:
            target_unit = WeightUnit(str(row.get("target_weight_unit") or "kg"))
            target_kg = mass_in_kg(float(target_raw), target_unit)
        updated_raw = row.get("updated_at")
        return HealthProfile(
            user_id=str(row["user_id"]),
            full_name=str(row["full_name"]),
            age=int(row["age"]),
            biological_sex=BiologicalSex(str(row["biological_sex"])),
            height_cm=length_in_cm(float(row["height_value"]), height_unit),
            weight_kg=mass_in_kg(float(row["current_weight_value"]), weight_unit),
            target_weight_kg=target_kg,
            activity_level=ActivityLevel(str(row["activity_level"])),
            consent_given=bool(row.get("consent_accepted")),
            updated_at=parse_timestamp(updated_raw) if updated_raw else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreUnavailableError(f"Invalid health profile row: {exc}") from exc


def _parse_goal(row: dict[str, object]) -> HealthGoal:
    try:
        goal_type = GoalType(str(row["goal_type"]))
    except (KeyError, ValueError) as exc:
        raise StoreUnavailableError(f"Invalid health goal row: {exc}") from exc
    return HealthGoal(
        goal_type=goal_type,
        is_primary=bool(row.get("is_primary")),
        priority_rank=int(row.get("priority_rank") or 0),
    )


def _parse_restrictions(
    row: dict[str, object], allergy_rows: list[dict[str, object]]
) -> DietaryRestrictions:
    diet_type = row.get("diet_type")
    custom = row.get("custom_restrictions_text")
    return DietaryRestrictions(
        diet_type=str(diet_type) if diet_type else None,
        custom_restrictions_text=str(custom) if custom else None,
        allergies=tuple(
            Allergy(
                allergen_name=str(allergy["allergen_name"]),
                severity_level=AllergySeverity(str(allergy["severity_level"])),
            )
            for allergy in allergy_rows
        ),
    )
