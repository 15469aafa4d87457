"""USDA FoodData Central search client."""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import httpx

DEFAULT_TIMEOUT_SECONDS = 15.0

_logger = logging.getLogger(__name__)


class FdcClient(Protocol):
    """Food search against FoodData Central."""

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Return the raw ``/foods/search`` payload for a query."""


@dataclass
class HttpxFdcClient(FdcClient):
    """FDC client over a shared httpx session."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def create(
        cls,
        api_key: str,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "HttpxFdcClient":
        """Create a client that owns its httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(timeout=timeout_seconds),
            timeout_seconds=timeout_seconds,
        )

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Search foods by name; non-2xx responses raise HTTPStatusError."""
        started = time.perf_counter()
        response = await self.http_client.get(
            f"{self.base_url}/foods/search",
            params={"query": query, "pageSize": page_size, "api_key": self.api_key},
            timeout=self.timeout_seconds,
        )
        _logger.debug(
            "FDC search %r returned %s in %.0fms",
            query,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the httpx session."""
        await self.http_client.aclose()
