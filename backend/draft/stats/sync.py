"""
Mirror Sleeper players and weekly stats into the local store.

Syncs are bulk upserts keyed by player id (players) and by
(player id, season, week) (stats), so re-running one is always safe.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from shared.dal.models import PlayerRecord, WeeklyStatRecord

if TYPE_CHECKING:
    from draft.stats.sleeper import SleeperClient
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.stat_repository import StatRepository

logger = structlog.get_logger()

# Pause between weeks in a multi-week sync to stay under Sleeper's rate limit.
WEEK_SYNC_PAUSE_SECONDS = 1.0

_POINT_KEYS = ("pts_ppr", "pts_half_ppr", "pts_std")


@dataclass(frozen=True)
class SyncResult:
    inserted: int
    updated: int

    @property
    def total(self) -> int:
        return self.inserted + self.updated


def fantasy_points(stat_line: dict[str, Any]) -> float:
    """PPR points if present, else half-PPR, else standard, else 0."""
    for key in _POINT_KEYS:
        value = stat_line.get(key)
        if value:
            return float(value)
    return 0.0


def player_from_sleeper(player_id: str, data: dict[str, Any]) -> PlayerRecord:
    first_name = data.get("first_name") or ""
    last_name = data.get("last_name") or ""
    return PlayerRecord(
        player_id=player_id,
        first_name=first_name,
        last_name=last_name,
        full_name=data.get("full_name") or f"{first_name} {last_name}".strip(),
        position=data.get("position") or "",
        team=data.get("team") or None,
        status=data.get("status") or "Inactive",
        fantasy_positions=data.get("fantasy_positions") or [],
    )


def stat_from_sleeper(player_id: str, season: int, week: int, data: dict[str, Any]) -> WeeklyStatRecord:
    return WeeklyStatRecord(
        player_id=player_id,
        season=season,
        week=week,
        points=fantasy_points(data),
        stats=data,
        opponent_team=data.get("opp") or None,
    )


class StatSyncService:
    def __init__(
        self,
        client: SleeperClient,
        player_repository: PlayerRepository,
        stat_repository: StatRepository,
    ) -> None:
        self._client = client
        self._player_repository = player_repository
        self._stat_repository = stat_repository

    async def sync_players(self) -> SyncResult:
        logger.info("starting player sync")
        raw = await self._client.get_all_players()
        players = [player_from_sleeper(player_id, data) for player_id, data in raw.items() if isinstance(data, dict)]
        inserted, updated = await self._player_repository.upsert_many(players)
        logger.info("player sync complete", inserted=inserted, updated=updated)
        return SyncResult(inserted=inserted, updated=updated)

    async def sync_weekly_stats(self, season: int, week: int) -> SyncResult:
        logger.info("starting stats sync", season=season, week=week)
        raw = await self._client.get_weekly_stats(season, week)
        stats = [
            stat_from_sleeper(player_id, season, week, data) for player_id, data in raw.items() if isinstance(data, dict)
        ]
        inserted, updated = await self._stat_repository.upsert_many(stats)
        logger.info("stats sync complete", season=season, week=week, inserted=inserted, updated=updated)
        return SyncResult(inserted=inserted, updated=updated)

    async def sync_multiple_weeks(self, season: int, start_week: int, end_week: int) -> SyncResult:
        """Sync weeks start_week..end_week inclusive, pausing between requests."""
        if start_week > end_week:
            raise ValueError(f"start_week {start_week} is after end_week {end_week}")
        logger.info("starting multi-week stats sync", season=season, start_week=start_week, end_week=end_week)
        inserted = updated = 0
        for week in range(start_week, end_week + 1):
            result = await self.sync_weekly_stats(season, week)
            inserted += result.inserted
            updated += result.updated
            if week < end_week:
                await asyncio.sleep(WEEK_SYNC_PAUSE_SECONDS)
        logger.info("multi-week stats sync complete", season=season, inserted=inserted, updated=updated)
        return SyncResult(inserted=inserted, updated=updated)
