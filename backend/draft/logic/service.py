"""Draft service: the ready, pick and rescore operations over the session store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from draft.logic import machine
from draft.logic.enums import DraftStatus, Position
from draft.logic.exceptions import InvalidTransitionError
from draft.logic.scoring import score_session

if TYPE_CHECKING:
    from draft.logic.scoring import StatProvider
    from draft.logic.state import DraftSession, Participant
    from draft.logic.store import CommitHook, DraftSessionStore
    from shared.dal.player_repository import PlayerRepository

logger = structlog.get_logger()


class DraftService:
    """
    Applies draft actions to stored sessions.

    Each action is one store mutation: load, validate through the pure state
    machine, score if the draft just finished, then persist. Rule violations
    surface as DraftRuleError and leave the stored session unchanged.
    """

    def __init__(
        self,
        store: DraftSessionStore,
        stat_provider: StatProvider,
        player_repository: PlayerRepository | None = None,
        *,
        enforce_roster_slots: bool = False,
    ) -> None:
        if enforce_roster_slots and player_repository is None:
            raise ValueError("enforce_roster_slots requires a player repository")
        self._store = store
        self._stat_provider = stat_provider
        self._player_repository = player_repository
        self._enforce_roster_slots = enforce_roster_slots

    async def create(self, participant_name: str) -> tuple[DraftSession, Participant]:
        return await self._store.create(participant_name)

    async def join(
        self,
        code: str,
        participant_name: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> tuple[DraftSession, Participant]:
        return await self._store.join(code, participant_name, on_commit=on_commit)

    async def get(self, code: str) -> DraftSession:
        return await self._store.get(code)

    async def watch(self, code: str, on_read: CommitHook) -> DraftSession:
        """Hand the current session to `on_read` without letting a mutation interleave."""
        return await self._store.read(code, on_read)

    async def ready(self, code: str, participant_id: str, *, on_commit: CommitHook | None = None) -> DraftSession:
        async def transition(session: DraftSession) -> DraftSession:
            return machine.mark_ready(session, participant_id)

        return await self._store.apply_mutation(code, transition, on_commit=on_commit)

    async def pick(
        self,
        code: str,
        participant_id: str,
        player_id: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> DraftSession:
        """Draft a player; the pick that fills the last slot also scores the session."""
        position = await self._resolve_position(player_id) if self._enforce_roster_slots else None

        async def transition(session: DraftSession) -> DraftSession:
            updated = machine.pick(
                session,
                participant_id,
                player_id,
                position=position,
                enforce_roster_slots=self._enforce_roster_slots,
            )
            if machine.is_finishing(session, updated):
                updated = await score_session(updated, self._stat_provider)
            return updated

        return await self._store.apply_mutation(code, transition, on_commit=on_commit)

    async def rescore(self, code: str, *, on_commit: CommitHook | None = None) -> DraftSession:
        """Re-run scoring on a finished session, e.g. after a late stat sync."""

        async def transition(session: DraftSession) -> DraftSession:
            if session.status != DraftStatus.FINISHED:
                raise InvalidTransitionError(f"Game {code} is {session.status.value}, not finished")
            return await score_session(session, self._stat_provider)

        session = await self._store.apply_mutation(code, transition, on_commit=on_commit)
        logger.info("session rescored", session_code=code, scores=[p.score for p in session.players])
        return session

    async def _resolve_position(self, player_id: str) -> Position | None:
        record = await self._player_repository.get(player_id)
        if record is None:
            return None
        try:
            return Position(record.position)
        except ValueError:
            return None
