"""
Draft state machine: waiting -> active -> finished.

Every function here is a pure transformation of a DraftSession. It either
returns a new session or raises a DraftRuleError; the input is never
modified, so a rejected action cannot leave a half-applied state behind.
Scoring of a finished session is not done here (it needs the stat
provider); see draft.logic.scoring.
"""

from __future__ import annotations

import structlog

from draft.logic.enums import DraftStatus, Position
from draft.logic.exceptions import (
    AlreadyPickedError,
    AlreadyStartedError,
    IneligiblePickError,
    InvalidTransitionError,
    NotYourTurnError,
    SessionFullError,
)
from draft.logic.roster import can_fill_slot
from draft.logic.state import MAX_PARTICIPANTS, DraftSession, LineupSlot, Participant

logger = structlog.get_logger()


def _replace_participant(session: DraftSession, participant: Participant) -> tuple[Participant, ...]:
    return tuple(participant if p.id == participant.id else p for p in session.players)


def _require_participant(session: DraftSession, participant_id: str) -> Participant:
    participant = session.find_participant(participant_id)
    if participant is None:
        raise InvalidTransitionError(f"Participant {participant_id} is not in game {session.code}")
    return participant


def add_participant(session: DraftSession, name: str) -> tuple[DraftSession, Participant]:
    """Seat a new participant at the end of the turn order."""
    if session.is_full:
        raise SessionFullError(f"Game {session.code} is full")
    if session.status != DraftStatus.WAITING:
        raise AlreadyStartedError(f"Game {session.code} has already started")

    participant = Participant(id=str(len(session.players) + 1), name=name)
    return session.model_copy(update={"players": (*session.players, participant)}), participant


def mark_ready(session: DraftSession, participant_id: str) -> DraftSession:
    """Mark a participant ready; start the draft once both participants are ready."""
    if session.status != DraftStatus.WAITING:
        raise InvalidTransitionError(f"Game {session.code} is {session.status.value}, not waiting")
    if len(session.players) < MAX_PARTICIPANTS:
        raise InvalidTransitionError(f"Game {session.code} is waiting for an opponent to join")

    participant = _require_participant(session, participant_id)
    players = _replace_participant(session, participant.model_copy(update={"ready": True}))

    if all(p.ready for p in players):
        logger.info("draft started", session_code=session.code)
        return session.model_copy(update={"players": players, "status": DraftStatus.ACTIVE, "current_turn": 0})
    return session.model_copy(update={"players": players})


def pick(
    session: DraftSession,
    participant_id: str,
    player_id: str,
    *,
    position: Position | None = None,
    enforce_roster_slots: bool = False,
) -> DraftSession:
    """Draft `player_id` for the participant on the clock.

    Turn order and double picks are always enforced. Roster-slot eligibility
    is checked only when `enforce_roster_slots` is set, in which case the
    target's position must be known.
    """
    if session.status != DraftStatus.ACTIVE:
        raise InvalidTransitionError(f"Game {session.code} is {session.status.value}, not active")

    on_clock = session.players[session.current_turn]
    if on_clock.id != participant_id:
        raise NotYourTurnError(f"It is {on_clock.name}'s turn")
    if player_id in session.picked_players:
        raise AlreadyPickedError(player_id)
    if on_clock.lineup_full:
        raise InvalidTransitionError(f"{on_clock.name}'s lineup is already full")

    if enforce_roster_slots:
        if position is None:
            raise IneligiblePickError(f"Player {player_id} has no known position")
        drafted = [slot.position for slot in on_clock.lineup if slot.position is not None]
        if can_fill_slot(drafted, position) is None:
            raise IneligiblePickError(f"No open roster slot for a {position.value}")

    updated = on_clock.model_copy(
        update={"lineup": (*on_clock.lineup, LineupSlot(player_id=player_id, position=position))},
    )
    players = _replace_participant(session, updated)
    changes: dict[str, object] = {
        "players": players,
        "picked_players": (*session.picked_players, player_id),
    }

    if all(p.lineup_full for p in players):
        changes["status"] = DraftStatus.FINISHED
        logger.info("draft complete", session_code=session.code)
    else:
        changes["current_turn"] = (session.current_turn + 1) % len(players)
    return session.model_copy(update=changes)


def is_finishing(before: DraftSession, after: DraftSession) -> bool:
    """True when a transition moved the session into FINISHED."""
    return before.status != DraftStatus.FINISHED and after.status == DraftStatus.FINISHED
