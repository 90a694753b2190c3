"""SQLite-backed session document repository."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import StoredDocument
from shared.dal.session_repository import ConcurrentModificationError, SessionRepository

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqliteSessionRepository(SessionRepository):
    """SQLite implementation of SessionRepository.

    The version column is the compare-and-swap token: every update is a
    single UPDATE guarded by ``version = ?``, so a writer holding a stale
    snapshot never overwrites a newer one.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create(self, key: str, data: str) -> StoredDocument:
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO draft_sessions (code, version, updated_at, data) VALUES (?, 1, ?, ?)",
                    (key, datetime.now(tz=UTC).isoformat(), data),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"Session '{key}' already exists") from exc
        return StoredDocument(key=key, version=1, data=data)

    async def get(self, key: str) -> StoredDocument | None:
        row = self._db.connection.execute(
            "SELECT version, data FROM draft_sessions WHERE code = ?",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return StoredDocument(key=key, version=row[0], data=row[1])

    async def compare_and_swap(self, key: str, expected_version: int, data: str) -> StoredDocument:
        async with self._lock:
            cursor = self._db.connection.execute(
                "UPDATE draft_sessions SET version = version + 1, updated_at = ?, data = ? "
                "WHERE code = ? AND version = ?",
                (datetime.now(tz=UTC).isoformat(), data, key, expected_version),
            )
            self._db.connection.commit()
        if cursor.rowcount == 0:
            logger.warning("session write rejected, stale version", code=key, expected_version=expected_version)
            raise ConcurrentModificationError(key, expected_version)
        return StoredDocument(key=key, version=expected_version + 1, data=data)
