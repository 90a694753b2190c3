"""SQLite-backed weekly stat repository."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from shared.dal.models import WeeklyStatRecord
from shared.dal.stat_repository import StatRepository

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from shared.db.connection import Database

# Stay well below SQLite's bound-parameter limit in IN (...) lookups.
_LOOKUP_CHUNK = 500


class SqliteStatRepository(StatRepository):
    """SQLite implementation of StatRepository keyed on (player_id, season, week)."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def upsert_many(self, stats: Sequence[WeeklyStatRecord]) -> tuple[int, int]:
        async with self._lock:
            conn = self._db.connection
            weeks = {(s.season, s.week) for s in stats}
            existing: set[tuple[str, int, int]] = set()
            for season, week in weeks:
                existing.update(
                    (row[0], season, week)
                    for row in conn.execute(
                        "SELECT player_id FROM weekly_stats WHERE season = ? AND week = ?",
                        (season, week),
                    )
                )
            try:
                conn.executemany(
                    "INSERT INTO weekly_stats (player_id, season, week, points, data) VALUES (?, ?, ?, ?, ?) "
                    "ON CONFLICT(player_id, season, week) DO UPDATE SET "
                    "points = excluded.points, data = excluded.data",
                    [(s.player_id, s.season, s.week, s.points, s.model_dump_json()) for s in stats],
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        keys = {(s.player_id, s.season, s.week) for s in stats}
        updated = len(keys & existing)
        return len(keys) - updated, updated

    async def get(self, player_id: str, season: int, week: int) -> WeeklyStatRecord | None:
        row = self._db.connection.execute(
            "SELECT data FROM weekly_stats WHERE player_id = ? AND season = ? AND week = ?",
            (player_id, season, week),
        ).fetchone()
        if row is None:
            return None
        return WeeklyStatRecord.model_validate(json.loads(row[0]))

    async def get_many(self, player_ids: Iterable[str], season: int, week: int) -> list[WeeklyStatRecord]:
        ids = sorted(set(player_ids))
        records: list[WeeklyStatRecord] = []
        for start in range(0, len(ids), _LOOKUP_CHUNK):
            chunk = ids[start : start + _LOOKUP_CHUNK]
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._db.connection.execute(
                f"SELECT data FROM weekly_stats WHERE season = ? AND week = ? AND player_id IN ({placeholders})",  # noqa: S608
                (season, week, *chunk),
            ).fetchall()
            records.extend(WeeklyStatRecord.model_validate(json.loads(row[0])) for row in rows)
        return records

    async def count_for_week(self, season: int, week: int) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM weekly_stats WHERE season = ? AND week = ?",
            (season, week),
        ).fetchone()
        return row[0]
