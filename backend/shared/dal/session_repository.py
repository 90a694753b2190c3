"""Abstract interface for draft session documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import StoredDocument


class ConcurrentModificationError(Exception):
    """The stored document changed since it was read (compare-and-swap lost)."""

    def __init__(self, key: str, expected_version: int) -> None:
        self.key = key
        self.expected_version = expected_version
        super().__init__(f"document {key} is no longer at version {expected_version}")


class SessionRepository(ABC):
    """Keyed, versioned JSON documents with atomic compare-and-swap updates.

    Documents are never deleted through this interface; expiry is handled
    outside the draft core.
    """

    @abstractmethod
    async def create(self, key: str, data: str) -> StoredDocument:
        """Insert a document at version 1. Raises ValueError if the key exists."""
        ...

    @abstractmethod
    async def get(self, key: str) -> StoredDocument | None: ...

    @abstractmethod
    async def compare_and_swap(self, key: str, expected_version: int, data: str) -> StoredDocument:
        """Replace the document if it is still at expected_version.

        Returns the stored document with its incremented version. Raises
        ConcurrentModificationError otherwise.
        """
        ...
