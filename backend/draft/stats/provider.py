"""StatProvider backed by the weekly-stat store, syncing missing weeks on demand."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING

import structlog

from draft.logic.scoring import StatFetchError, StatProvider
from draft.stats.sleeper import SleeperAPIError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from draft.stats.sync import StatSyncService
    from shared.dal.stat_repository import StatRepository

logger = structlog.get_logger()


class StoredStatProvider(StatProvider):
    """
    Reads points from the stat store.

    When the requested week has no stored stats at all, one sync from Sleeper
    is attempted before reading. Each attempt (sync + read) is retried up to
    `attempts` times with `retry_delay` seconds in between, after which
    StatFetchError is raised.
    """

    def __init__(
        self,
        stat_repository: StatRepository,
        sync_service: StatSyncService | None = None,
        *,
        attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        self._stat_repository = stat_repository
        self._sync_service = sync_service
        self._attempts = attempts
        self._retry_delay = retry_delay

    async def get_points(self, player_ids: Sequence[str], season: int, week: int) -> dict[str, float]:
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                return await self._fetch(player_ids, season, week)
            # pydantic ValidationError is a ValueError.
            except (SleeperAPIError, sqlite3.Error, ValueError) as e:
                last_error = e
                logger.warning(
                    "stat fetch attempt failed",
                    season=season,
                    week=week,
                    attempt=attempt,
                    attempts=self._attempts,
                    error=str(e),
                )
                if attempt < self._attempts:
                    await asyncio.sleep(self._retry_delay)
        raise StatFetchError(f"no stats for {season} week {week} after {self._attempts} attempts") from last_error

    async def _fetch(self, player_ids: Sequence[str], season: int, week: int) -> dict[str, float]:
        if self._sync_service is not None and await self._stat_repository.count_for_week(season, week) == 0:
            logger.info("no stored stats for week, syncing", season=season, week=week)
            await self._sync_service.sync_weekly_stats(season, week)
        records = await self._stat_repository.get_many(player_ids, season, week)
        return {record.player_id: record.points for record in records}
