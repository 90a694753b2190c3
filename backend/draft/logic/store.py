"""
Durable keyed storage of draft sessions with linearized mutations.

Every write goes through the versioned compare-and-swap of the underlying
SessionRepository, and every read-modify-write for one code runs under that
code's asyncio.Lock, so at most one mutation per session is in flight.
"""

from __future__ import annotations

import asyncio
import random
import weakref
from typing import TYPE_CHECKING

import structlog

from draft.logic.exceptions import SessionNotFoundError
from draft.logic.machine import add_participant
from draft.logic.room import draw_season_week, generate_code
from draft.logic.state import DraftSession, Participant

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from shared.dal.session_repository import SessionRepository

    CommitHook = Callable[[DraftSession], Awaitable[None]]

logger = structlog.get_logger()

MAX_CODE_ATTEMPTS = 10


def _dump(session: DraftSession) -> str:
    # The version column is authoritative and is not duplicated in the document.
    return session.model_dump_json(exclude={"version"})


def _load(data: str, version: int) -> DraftSession:
    return DraftSession.model_validate_json(data).model_copy(update={"version": version})


class DraftSessionStore:
    def __init__(
        self,
        repository: SessionRepository,
        week_pool: dict[int, int],
        rng: random.Random | None = None,
    ) -> None:
        self._repository = repository
        self._week_pool = week_pool
        self._rng = rng or random.SystemRandom()
        # Entries live only while a mutation for the code is queued or running.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, code: str) -> asyncio.Lock:
        lock = self._locks.get(code)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[code] = lock
        return lock

    async def create(self, participant_name: str) -> tuple[DraftSession, Participant]:
        """Open a new room with one participant and a randomly drawn (season, week)."""
        season, week = draw_season_week(self._week_pool, self._rng)
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code(self._rng)
            session, participant = add_participant(DraftSession(code=code, season=season, week=week), participant_name)
            try:
                stored = await self._repository.create(code, _dump(session))
            except ValueError:
                logger.info("room code collision, retrying", session_code=code)
                continue
            logger.info("game created", session_code=code, season=season, week=week)
            return session.model_copy(update={"version": stored.version}), participant
        raise RuntimeError(f"could not allocate a unique room code after {MAX_CODE_ATTEMPTS} attempts")

    async def get(self, code: str) -> DraftSession:
        document = await self._repository.get(code)
        if document is None:
            raise SessionNotFoundError(code)
        return _load(document.data, document.version)

    async def read(self, code: str, on_read: CommitHook) -> DraftSession:
        """Load a session and pass it to `on_read` while holding the code's lock."""
        async with self._lock_for(code):
            session = await self.get(code)
            await on_read(session)
        return session

    async def join(
        self,
        code: str,
        participant_name: str,
        *,
        on_commit: CommitHook | None = None,
    ) -> tuple[DraftSession, Participant]:
        """Seat a second participant. Raises NotFound, Full or AlreadyStarted."""
        joined: list[Participant] = []

        async def seat(session: DraftSession) -> DraftSession:
            updated, participant = add_participant(session, participant_name)
            joined.append(participant)
            return updated

        session = await self.apply_mutation(code, seat, on_commit=on_commit)
        logger.info("participant joined", session_code=code, participant_id=joined[0].id)
        return session, joined[0]

    async def apply_mutation(
        self,
        code: str,
        fn: Callable[[DraftSession], Awaitable[DraftSession]],
        *,
        on_commit: CommitHook | None = None,
    ) -> DraftSession:
        """Load, transform and persist a session under its lock.

        `fn` may raise a DraftRuleError, in which case nothing is written.
        The transformation is async so that scoring can run inside the same
        critical section as the pick that finishes the draft.

        `on_commit` receives the persisted session before the lock is
        released, so snapshots handed to it are delivered in commit order.
        """
        async with self._lock_for(code):
            current = await self.get(code)
            updated = await fn(current)
            stored = await self._repository.compare_and_swap(code, current.version, _dump(updated))
            committed = updated.model_copy(update={"version": stored.version})
            if on_commit is not None:
                await on_commit(committed)
        return committed
