import asyncio
import random
import sqlite3
from unittest.mock import patch

import pytest

from draft.logic.enums import DraftStatus
from draft.logic.exceptions import (
    NotYourTurnError,
    SessionFullError,
    SessionNotFoundError,
)
from draft.logic.machine import mark_ready, pick
from draft.logic.store import MAX_CODE_ATTEMPTS, DraftSessionStore
from draft.tests.conftest import TEST_SEASON, TEST_WEEK_POOL
from shared.dal.session_repository import ConcurrentModificationError


class TestCreate:
    async def test_creates_waiting_session_with_one_participant(self, store):
        session, participant = await store.create("Alice")

        assert session.status == DraftStatus.WAITING
        assert participant.id == "1"
        assert session.players == (participant,)
        assert session.season == TEST_SEASON
        assert 1 <= session.week <= 18
        assert session.version == 1

    async def test_created_session_is_readable(self, store):
        session, _ = await store.create("Alice")
        assert await store.get(session.code) == session

    async def test_code_collision_is_retried(self, session_repository):
        first = DraftSessionStore(session_repository, TEST_WEEK_POOL, rng=random.Random(99))
        second = DraftSessionStore(session_repository, TEST_WEEK_POOL, rng=random.Random(99))

        a, _ = await first.create("Alice")
        b, _ = await second.create("Bob")

        assert a.code != b.code

    async def test_gives_up_after_bounded_attempts(self, store, session_repository):
        with (
            patch.object(session_repository, "create", side_effect=ValueError("exists")) as create,
            pytest.raises(RuntimeError, match="unique room code"),
        ):
            await store.create("Alice")
        assert create.call_count == MAX_CODE_ATTEMPTS


class TestGetAndJoin:
    async def test_unknown_code_not_found(self, store):
        with pytest.raises(SessionNotFoundError):
            await store.get("NOPE00")

    async def test_join_appends_second_participant(self, store):
        created, _ = await store.create("Alice")
        session, participant = await store.join(created.code, "Bob")

        assert participant.id == "2"
        assert [p.name for p in session.players] == ["Alice", "Bob"]
        assert session.version == 2

    async def test_join_unknown_code(self, store):
        with pytest.raises(SessionNotFoundError):
            await store.join("NOPE00", "Bob")

    async def test_join_full_session(self, store):
        created, _ = await store.create("Alice")
        await store.join(created.code, "Bob")
        with pytest.raises(SessionFullError):
            await store.join(created.code, "Carol")


class TestApplyMutation:
    async def _active(self, store) -> str:
        created, _ = await store.create("Alice")
        await store.join(created.code, "Bob")

        async def ready_both(session):
            return mark_ready(mark_ready(session, "1"), "2")

        await store.apply_mutation(created.code, ready_both)
        return created.code

    async def test_rule_error_writes_nothing(self, store):
        code = await self._active(store)
        before = await store.get(code)

        async def wrong_turn(session):
            return pick(session, "2", "X")

        with pytest.raises(NotYourTurnError):
            await store.apply_mutation(code, wrong_turn)
        assert await store.get(code) == before

    async def test_version_increments_per_write(self, store):
        code = await self._active(store)
        before = await store.get(code)

        async def first_pick(session):
            return pick(session, "1", "X")

        after = await store.apply_mutation(code, first_pick)
        assert after.version == before.version + 1

    async def test_concurrent_picks_for_same_turn_exactly_one_wins(self, store):
        code = await self._active(store)

        def picker(player_id):
            async def transition(session):
                await asyncio.sleep(0)
                return pick(session, "1", player_id)

            return transition

        results = await asyncio.gather(
            store.apply_mutation(code, picker("X")),
            store.apply_mutation(code, picker("Y")),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], NotYourTurnError)
        final = await store.get(code)
        assert len(final.picked_players) == 1

    async def test_join_after_start_rejected(self, store):
        code = await self._active(store)
        with pytest.raises(SessionFullError):
            await store.join(code, "Carol")

    async def test_stale_write_surfaces_concurrent_modification(self, store, session_repository):
        code = await self._active(store)

        async def sneaky_pick(session):
            # A write that bypasses the store lock moves the version underneath us.
            current = await session_repository.get(code)
            await session_repository.compare_and_swap(code, current.version, current.data)
            return pick(session, "1", "X")

        with pytest.raises(ConcurrentModificationError):
            await store.apply_mutation(code, sneaky_pick)

    async def test_repository_error_propagates(self, store, session_repository):
        code = await self._active(store)

        async def first_pick(session):
            return pick(session, "1", "X")

        with (
            patch.object(session_repository, "compare_and_swap", side_effect=sqlite3.OperationalError("locked")),
            pytest.raises(sqlite3.OperationalError),
        ):
            await store.apply_mutation(code, first_pick)


class TestCommitHooks:
    async def test_on_commit_sees_persisted_session_under_lock(self, store):
        created, _ = await store.create("Alice")
        seen = []

        async def record(session):
            seen.append((session, store._locks[created.code].locked()))

        joined, _ = await store.join(created.code, "Bob", on_commit=record)

        assert seen == [(joined, True)]
        assert joined.version == 2

    async def test_on_commit_skipped_when_rule_rejects(self, store):
        created, _ = await store.create("Alice")
        await store.join(created.code, "Bob")
        seen = []

        async def record(session):
            seen.append(session)

        with pytest.raises(SessionFullError):
            await store.join(created.code, "Carol", on_commit=record)
        assert seen == []

    async def test_next_mutation_waits_for_on_commit(self, store):
        created, _ = await store.create("Alice")
        order = []

        async def slow_hook(session):
            await asyncio.sleep(0.01)
            order.append(("delivered", len(session.players)))

        async def ready_alice(session):
            order.append(("mutating", len(session.players)))
            return session

        await asyncio.gather(
            store.join(created.code, "Bob", on_commit=slow_hook),
            store.apply_mutation(created.code, ready_alice),
        )

        assert order == [("delivered", 2), ("mutating", 2)]

    async def test_read_hands_current_session_to_callback(self, store):
        created, _ = await store.create("Alice")
        seen = []

        async def record(session):
            seen.append(session)

        assert await store.read(created.code, record) == created
        assert seen == [created]


class TestLocks:
    async def test_unknown_codes_leave_no_lock_behind(self, store):
        for i in range(1000):
            with pytest.raises(SessionNotFoundError):
                await store.join(f"NOPE{i}", "Mallory")

        assert len(store._locks) == 0

    async def test_lock_released_after_mutation(self, store):
        created, _ = await store.create("Alice")
        await store.join(created.code, "Bob")

        assert len(store._locks) == 0
