import random
from collections.abc import Sequence

import pytest

from draft.logic.enums import DraftStatus, Position
from draft.logic.service import DraftService
from draft.logic.state import DraftSession, LineupSlot, Participant
from draft.logic.store import DraftSessionStore
from draft.messaging.router import MessageRouter
from draft.session.manager import SessionManager
from draft.tests.mocks import FakeStatProvider, MockConnection
from shared.db import Database, SqlitePlayerRepository, SqliteSessionRepository, SqliteStatRepository

TEST_SEASON = 2023
TEST_WEEK_POOL = {TEST_SEASON: 18}

# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_participant(
    participant_id: str = "1",
    name: str | None = None,
    *,
    picks: Sequence[str] = (),
    positions: Sequence[Position | None] | None = None,
    ready: bool = False,
) -> Participant:
    """Create a Participant whose lineup holds `picks` in order."""
    if positions is None:
        positions = [None] * len(picks)
    return Participant(
        id=participant_id,
        name=name if name is not None else f"Player{participant_id}",
        lineup=tuple(LineupSlot(player_id=p, position=pos) for p, pos in zip(picks, positions, strict=True)),
        ready=ready,
    )


def create_session(
    *,
    code: str = "ABC123",
    season: int = TEST_SEASON,
    week: int = 5,
    players: Sequence[Participant] | None = None,
    current_turn: int = 0,
    status: DraftStatus = DraftStatus.WAITING,
) -> DraftSession:
    """Create a DraftSession; picked_players is derived from the lineups."""
    if players is None:
        players = [create_participant("1"), create_participant("2")]
    picked = [slot.player_id for p in players for slot in p.lineup]
    return DraftSession(
        code=code,
        season=season,
        week=week,
        players=tuple(players),
        picked_players=tuple(picked),
        current_turn=current_turn,
        status=status,
    )


def create_active_session(**kwargs) -> DraftSession:
    """Two ready participants with empty lineups, participant "1" on the clock."""
    return create_session(
        players=[create_participant("1", ready=True), create_participant("2", ready=True)],
        status=DraftStatus.ACTIVE,
        **kwargs,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def database():
    db = Database(":memory:")
    db.connect()
    yield db
    db.close()


@pytest.fixture
def session_repository(database):
    return SqliteSessionRepository(database)


@pytest.fixture
def player_repository(database):
    return SqlitePlayerRepository(database)


@pytest.fixture
def stat_repository(database):
    return SqliteStatRepository(database)


@pytest.fixture
def stat_provider():
    return FakeStatProvider()


@pytest.fixture
def store(session_repository):
    return DraftSessionStore(session_repository, TEST_WEEK_POOL, rng=random.Random(7))


@pytest.fixture
def draft_service(store, stat_provider):
    return DraftService(store, stat_provider)


@pytest.fixture
def session_manager(draft_service):
    return SessionManager(draft_service)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()
