"""Periodic Sleeper syncs: players daily at 03:00, weekly stats on Tuesday 04:00 (UTC)."""

from __future__ import annotations

import asyncio
import contextlib
import math
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from draft.logic.room import COMPLETED_SEASON_WEEKS

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from draft.stats.sync import StatSyncService

logger = structlog.get_logger()

PLAYER_SYNC_HOUR = 3
STATS_SYNC_HOUR = 4
STATS_SYNC_WEEKDAY = 1  # Tuesday, after Monday night games

# Approximate regular-season kickoff; week boundaries are counted from here.
SEASON_START_MONTH = 9
SEASON_START_DAY = 5


def current_season_week(today: date) -> tuple[int, int]:
    """Season and week in progress on `today`.

    Before the September kickoff the previous season is reported, at its
    final week. The week is clamped to 1..18.
    """
    season = today.year
    start = date(season, SEASON_START_MONTH, SEASON_START_DAY)
    if today < start:
        season -= 1
        start = date(season, SEASON_START_MONTH, SEASON_START_DAY)
    weeks = math.ceil((today - start).days / 7)
    return season, max(1, min(weeks, COMPLETED_SEASON_WEEKS))


def seconds_until(now: datetime, hour: int, weekday: int | None = None) -> float:
    """Seconds from `now` to the next hh:00, optionally on the given weekday (Monday=0)."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if weekday is not None:
        target += timedelta(days=(weekday - now.weekday()) % 7)
    if target <= now:
        target += timedelta(days=7 if weekday is not None else 1)
    return (target - now).total_seconds()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SyncScheduler:
    def __init__(self, sync_service: StatSyncService, clock: Callable[[], datetime] = _utcnow) -> None:
        self._sync_service = sync_service
        self._clock = clock
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start both sync loops. Idempotent."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._loop("player sync", self.run_player_sync, PLAYER_SYNC_HOUR)),
            asyncio.create_task(
                self._loop("weekly stats sync", self.run_stats_sync, STATS_SYNC_HOUR, STATS_SYNC_WEEKDAY),
            ),
        ]
        logger.info("sync scheduler started")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

    async def run_player_sync(self) -> None:
        await self._sync_service.sync_players()

    async def run_stats_sync(self) -> None:
        season, week = current_season_week(self._clock().date())
        await self._sync_service.sync_weekly_stats(season, week)

    async def _loop(
        self,
        name: str,
        job: Callable[[], Coroutine[Any, Any, None]],
        hour: int,
        weekday: int | None = None,
    ) -> None:
        while True:
            await asyncio.sleep(seconds_until(self._clock(), hour, weekday))
            logger.info("running scheduled job", job=name)
            try:
                await job()
            except Exception:
                logger.exception("scheduled job failed", job=name)
