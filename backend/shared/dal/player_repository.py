"""Abstract interface for mirrored NFL player records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.dal.models import PlayerRecord


class PlayerRepository(ABC):
    """Abstract interface for player persistence."""

    @abstractmethod
    async def upsert_many(self, players: Sequence[PlayerRecord]) -> tuple[int, int]:
        """Insert or replace players by player_id. Returns (inserted, updated)."""
        ...

    @abstractmethod
    async def get(self, player_id: str) -> PlayerRecord | None: ...

    @abstractmethod
    async def search(
        self,
        *,
        position: str | None = None,
        team: str | None = None,
        name: str | None = None,
    ) -> list[PlayerRecord]:
        """Fantasy-relevant players matching the filters, active first, then by name."""
        ...

    @abstractmethod
    async def count(self, *, status: str | None = None) -> int: ...
