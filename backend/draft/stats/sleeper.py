"""Async client for the public Sleeper NFL API."""

from http import HTTPStatus
from typing import Any

import httpx

DEFAULT_BASE_URL = "https://api.sleeper.app/v1"


class SleeperAPIError(Exception):
    """The Sleeper API could not be reached or answered with an error."""


class SleeperClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def get_all_players(self) -> dict[str, dict[str, Any]]:
        """Every NFL player keyed by Sleeper player id."""
        return await self._get("/players/nfl")

    async def get_weekly_stats(self, season: int, week: int) -> dict[str, dict[str, Any]]:
        """Regular-season stat lines for one week keyed by player id."""
        return await self._get(f"/stats/nfl/regular/{season}/{week}")

    async def get_weekly_projections(self, season: int, week: int) -> dict[str, dict[str, Any]]:
        return await self._get(f"/projections/nfl/regular/{season}/{week}")

    async def _get(self, path: str) -> dict[str, dict[str, Any]]:
        url = f"{self._base_url}{path}"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(url)
            except httpx.RequestError as e:
                raise SleeperAPIError(f"Failed to reach Sleeper API at {url}: {e}") from e

        if response.status_code != HTTPStatus.OK:
            raise SleeperAPIError(f"Sleeper API returned {response.status_code} for {url}")
        try:
            data = response.json()
        except ValueError as e:
            raise SleeperAPIError(f"Sleeper API returned invalid JSON for {url}") from e
        # Weeks without games come back as null or an empty list.
        if not data:
            return {}
        if not isinstance(data, dict):
            raise SleeperAPIError(f"Sleeper API returned {type(data).__name__} for {url}, expected an object")
        return data
