"""SQLite database layer: connection management and repository implementations."""

from shared.db.connection import Database
from shared.db.player_repository import SqlitePlayerRepository
from shared.db.session_repository import SqliteSessionRepository
from shared.db.stat_repository import SqliteStatRepository

__all__ = [
    "Database",
    "SqlitePlayerRepository",
    "SqliteSessionRepository",
    "SqliteStatRepository",
]
