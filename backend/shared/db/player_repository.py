"""SQLite-backed player repository."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from shared.dal.models import FANTASY_POSITIONS, PlayerRecord
from shared.dal.player_repository import PlayerRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.db.connection import Database


class SqlitePlayerRepository(PlayerRepository):
    """SQLite implementation of PlayerRepository.

    Filterable fields live in their own columns; the full record is kept as
    JSON in ``data``.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def upsert_many(self, players: Sequence[PlayerRecord]) -> tuple[int, int]:
        async with self._lock:
            conn = self._db.connection
            existing = {row[0] for row in conn.execute("SELECT id FROM players")}
            try:
                conn.executemany(
                    "INSERT INTO players (id, full_name, position, team, status, data) "
                    "VALUES (?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET "
                    "full_name = excluded.full_name, position = excluded.position, "
                    "team = excluded.team, status = excluded.status, data = excluded.data",
                    [
                        (p.player_id, p.full_name, p.position, p.team, p.status, p.model_dump_json())
                        for p in players
                    ],
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        updated = sum(1 for p in {p.player_id for p in players} if p in existing)
        return len({p.player_id for p in players}) - updated, updated

    async def get(self, player_id: str) -> PlayerRecord | None:
        row = self._db.connection.execute("SELECT data FROM players WHERE id = ?", (player_id,)).fetchone()
        if row is None:
            return None
        return PlayerRecord.model_validate(json.loads(row[0]))

    async def search(
        self,
        *,
        position: str | None = None,
        team: str | None = None,
        name: str | None = None,
    ) -> list[PlayerRecord]:
        clauses: list[str] = []
        params: list[str] = []
        if position:
            clauses.append("position = ?")
            params.append(position)
        else:
            clauses.append(f"position IN ({', '.join('?' for _ in FANTASY_POSITIONS)})")
            params.extend(FANTASY_POSITIONS)
        if team:
            clauses.append("team = ?")
            params.append(team)
        if name:
            clauses.append("full_name LIKE ? ESCAPE '\\'")
            escaped = name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            params.append(f"%{escaped}%")

        rows = self._db.connection.execute(
            f"SELECT data FROM players WHERE {' AND '.join(clauses)} ORDER BY status, full_name",  # noqa: S608
            params,
        ).fetchall()
        return [PlayerRecord.model_validate(json.loads(row[0])) for row in rows]

    async def count(self, *, status: str | None = None) -> int:
        if status is None:
            row = self._db.connection.execute("SELECT COUNT(*) FROM players").fetchone()
        else:
            row = self._db.connection.execute("SELECT COUNT(*) FROM players WHERE status = ?", (status,)).fetchone()
        return row[0]
