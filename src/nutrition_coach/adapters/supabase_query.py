"""Shared helpers for Supabase queries and row parsing."""

from datetime import datetime
from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError

from nutrition_coach.domain.errors import StoreUnavailableError


class ExecutableQuery(Protocol):
    """A built PostgREST query that can be executed."""

    def execute(self) -> Any:
        """Run the query."""


def execute_query(query: ExecutableQuery, action: str) -> list[dict[str, Any]]:
    """Execute a query and return its rows, raising StoreUnavailableError."""
    try:
        response = query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StoreUnavailableError(f"Failed to {action}: {exc}") from exc
    return list(response.data or [])


def parse_timestamp(value: object) -> datetime:
    """Parse a timestamptz column value."""
    if not isinstance(value, str) or not value:
        raise StoreUnavailableError(f"Invalid timestamp in store row: {value!r}")
    # PostgREST may return a trailing Z for UTC.
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
