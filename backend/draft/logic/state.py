"""
Draft session state models.

All models are frozen; transitions in draft.logic.machine return new
instances via model_copy and never mutate their input.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from draft.logic.enums import DraftStatus, Position

ROSTER_SIZE = 9
MAX_PARTICIPANTS = 2


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class LineupSlot(BaseModel):
    """One drafted player and the fantasy points credited for them."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    points: float = 0.0
    # Recorded only when the position was known at pick time.
    position: Position | None = None


class Participant(BaseModel):
    """A drafter embedded in a session."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    lineup: tuple[LineupSlot, ...] = ()
    ready: bool = False
    score: float | None = None

    @property
    def lineup_full(self) -> bool:
        return len(self.lineup) >= ROSTER_SIZE

    @property
    def drafted_ids(self) -> list[str]:
        return [slot.player_id for slot in self.lineup]


class DraftSession(BaseModel):
    """Canonical state of one draft room."""

    model_config = ConfigDict(frozen=True)

    code: str
    season: int
    week: int
    players: tuple[Participant, ...] = ()
    picked_players: tuple[str, ...] = ()
    current_turn: int = 0
    status: DraftStatus = DraftStatus.WAITING
    created_at: datetime = Field(default_factory=_utcnow)
    version: int = 0

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PARTICIPANTS

    @property
    def current_participant(self) -> Participant | None:
        if self.status != DraftStatus.ACTIVE:
            return None
        return self.players[self.current_turn]

    def find_participant(self, participant_id: str) -> Participant | None:
        for participant in self.players:
            if participant.id == participant_id:
                return participant
        return None

    def drafted_player_ids(self) -> list[str]:
        """Every drafted player id, in seat order then pick order."""
        return [player_id for participant in self.players for player_id in participant.drafted_ids]
