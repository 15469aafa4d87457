"""Supabase repository for weight snapshots."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_coach.adapters.supabase_query import execute_query, parse_timestamp
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.weight import WeightSnapshot, WeightUnit
from nutrition_coach.services.weight import WeightRepository

_COLUMNS = "weight_snapshot_id, user_id, weight_value, weight_unit_hint, recorded_at"


@dataclass
class SupabaseWeightRepository(WeightRepository):
    """Supabase implementation for weight snapshots."""

    client: Client

    def insert_weight(
        self,
        user_id: str,
        weight_value: float,
        unit_hint: WeightUnit,
        recorded_at: datetime | None = None,
    ) -> WeightSnapshot:
        """Insert a weight row and return the stored snapshot."""
        payload: dict[str, object] = {
            "user_id": user_id,
            "weight_value": weight_value,
            "weight_unit_hint": unit_hint.value,
        }
        if recorded_at is not None:
            payload["recorded_at"] = recorded_at.isoformat()
        rows = execute_query(
            self.client.table("weight_snapshot").insert(payload), "insert weight"
        )
        if not rows:
            raise StoreUnavailableError("Failed to insert weight: no row returned")
        return _parse_row(rows[0])

    def list_weights_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[WeightSnapshot]:
        """Return snapshots recorded in the time range, oldest first."""
        rows = execute_query(
            self.client.table("weight_snapshot")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .gte("recorded_at", start.isoformat())
            .lt("recorded_at", end.isoformat())
            .order("recorded_at", desc=False),
            "list weights",
        )
        return [_parse_row(row) for row in rows]


def _parse_row(row: dict[str, object]) -> WeightSnapshot:
    unit_raw = row.get("weight_unit_hint")
    try:
        unit_hint = WeightUnit(str(unit_raw))
    except ValueError as exc:
        raise StoreUnavailableError(
            f"Weight row has no valid unit hint: {unit_raw!r}"
        ) from exc
    return WeightSnapshot(
        id=UUID(str(row["weight_snapshot_id"])),
        user_id=str(row["user_id"]),
        weight_value=float(row["weight_value"]),
        unit_hint=unit_hint,
        recorded_at=parse_timestamp(row.get("recorded_at")),
    )
