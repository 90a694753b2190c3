"""Abstract interface for weekly stat records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from shared.dal.models import WeeklyStatRecord


class StatRepository(ABC):
    """Abstract interface for weekly stat persistence, unique per (player, season, week)."""

    @abstractmethod
    async def upsert_many(self, stats: Sequence[WeeklyStatRecord]) -> tuple[int, int]:
        """Insert or replace stat rows. Returns (inserted, updated)."""
        ...

    @abstractmethod
    async def get(self, player_id: str, season: int, week: int) -> WeeklyStatRecord | None: ...

    @abstractmethod
    async def get_many(self, player_ids: Iterable[str], season: int, week: int) -> list[WeeklyStatRecord]: ...

    @abstractmethod
    async def count_for_week(self, season: int, week: int) -> int: ...
