"""
Scoring pass for finished drafts.

Points are resolved in one batch from a StatProvider and written back into
every lineup slot; each participant's score is the sum of their slots.
The pass is deterministic: the same stat snapshot always produces the same
points and scores, so re-running it on a finished session is safe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from draft.logic.state import DraftSession

logger = structlog.get_logger()


class StatFetchError(Exception):
    """The stat provider could not deliver points within its retry budget."""


class StatProvider(ABC):
    """Source of weekly fantasy points per player."""

    @abstractmethod
    async def get_points(self, player_ids: Sequence[str], season: int, week: int) -> dict[str, float]:
        """
        Return points for the given players in (season, week).

        Players without a stat record are omitted from the result.
        Raises StatFetchError if the data cannot be fetched.
        """
        ...


def apply_scores(session: DraftSession, points: Mapping[str, float]) -> DraftSession:
    """Rewrite slot points from `points` (missing players score 0) and total each lineup."""
    players = []
    for participant in session.players:
        lineup = tuple(
            slot.model_copy(update={"points": float(points.get(slot.player_id, 0.0))}) for slot in participant.lineup
        )
        score = sum(slot.points for slot in lineup)
        players.append(participant.model_copy(update={"lineup": lineup, "score": score}))
    return session.model_copy(update={"players": tuple(players)})


async def score_session(session: DraftSession, provider: StatProvider) -> DraftSession:
    """Fetch points for every drafted player and apply them.

    A provider failure never blocks the finish: every player then scores 0
    and a rescore can be run once stats are available.
    """
    player_ids = session.drafted_player_ids()
    try:
        points = await provider.get_points(player_ids, session.season, session.week)
    except StatFetchError:
        logger.exception(
            "stat fetch failed, scoring with zero points",
            session_code=session.code,
            season=session.season,
            week=session.week,
        )
        points = {}

    missing = [player_id for player_id in player_ids if player_id not in points]
    if missing:
        logger.info("players without stats score 0", session_code=session.code, missing=len(missing))
    return apply_scores(session, points)
