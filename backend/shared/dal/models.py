"""Persistence models for the data access layer."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

# Positions that can fill a lineup slot; everything else in the player feed is ignored.
FANTASY_POSITIONS = ("QB", "RB", "WR", "TE", "K", "DEF")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class PlayerRecord(BaseModel, frozen=True):
    """An NFL player as mirrored from the stats provider."""

    player_id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    position: str = ""
    team: str | None = None
    status: str = "Inactive"
    fantasy_positions: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utcnow)


class WeeklyStatRecord(BaseModel, frozen=True):
    """One player's statistics and fantasy points for a single week."""

    player_id: str
    season: int
    week: int
    points: float = 0.0
    stats: dict[str, Any] = Field(default_factory=dict)
    opponent_team: str | None = None
    is_home: bool | None = None
    updated_at: datetime = Field(default_factory=_utcnow)


class StoredDocument(BaseModel, frozen=True):
    """A versioned JSON document as held by the session store."""

    key: str
    version: int
    data: str  # JSON text
