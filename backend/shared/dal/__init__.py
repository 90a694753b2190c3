"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.models import FANTASY_POSITIONS, PlayerRecord, StoredDocument, WeeklyStatRecord
from shared.dal.player_repository import PlayerRepository
from shared.dal.session_repository import ConcurrentModificationError, SessionRepository
from shared.dal.stat_repository import StatRepository

__all__ = [
    "FANTASY_POSITIONS",
    "ConcurrentModificationError",
    "PlayerRecord",
    "PlayerRepository",
    "SessionRepository",
    "StatRepository",
    "StoredDocument",
    "WeeklyStatRecord",
]
