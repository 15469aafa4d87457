"""Nutrition lookup service integrating USDA FDC."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nutrition_coach.adapters.fdc_client import FdcClient
from nutrition_coach.domain.nutrition import NutritionData
from nutrition_coach.services.cache import Cache

_NUTRIENT_IDS = {
    "calories": 1008,
    "protein": 1003,
    "fat": 1004,
    "carbs": 1005,
}

_MISSING = "missing"

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class NutritionService:
    """Best-effort nutrition lookups with caching."""

    fdc_client: FdcClient
    cache: Cache
    lookup_ttl_seconds: int = 3600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup(self, food_name: str) -> NutritionData | None:
        """Return nutrition for the best search match, or None."""
        query = food_name.strip()
        if not query:
            return None
        cache_key = f"fdc:lookup:{query.lower()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, NutritionData):
            return cached
        if cached == _MISSING:
            return None

        try:
            payload = await self._call_with_retry(
                lambda: self.fdc_client.search_foods(query, page_size=1),
                action=f"search:{query}",
            )
        except Exception as exc:  # noqa: BLE001
            _logger.warning(
                "Nutrition lookup failed for %r (status=%s): %s",
                query,
                _status_code_from_exception(exc),
                exc,
            )
            return None

        foods = payload.get("foods") or []
        if not foods:
            _logger.info("Nutrition lookup found no results for %r", query)
            self.cache.set(cache_key, _MISSING, ttl_seconds=self.lookup_ttl_seconds)
            return None

        nutrition = _extract_nutrition(foods[0].get("foodNutrients") or [])
        self.cache.set(cache_key, nutrition, ttl_seconds=self.lookup_ttl_seconds)
        return nutrition

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Nutrition %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _extract_nutrition(food_nutrients: list[dict[str, object]]) -> NutritionData:
    """Extract calories and macros from FDC search-result nutrients."""
    values: dict[str, float | None] = dict.fromkeys(_NUTRIENT_IDS)
    for nutrient in food_nutrients:
        nutrient_id = nutrient.get("nutrientId")
        amount = nutrient.get("value")
        if amount is None:
            continue
        for name, expected_id in _NUTRIENT_IDS.items():
            if nutrient_id == expected_id:
                values[name] = float(amount)

    missing = [name for name, value in values.items() if value is None]
    if missing:
        _logger.debug("FDC result missing nutrients: %s", ", ".join(missing))

    return NutritionData(
        calories=round(values["calories"] or 0),
        protein_g=_rounded(values["protein"]),
        carbs_g=_rounded(values["carbs"]),
        fat_g=_rounded(values["fat"]),
    )


def _rounded(value: float | None) -> int | None:
    return round(value) if value is not None else None
