"""Connection abstraction shared by the WebSocket endpoint and the tests."""

from abc import ABC, abstractmethod
from typing import Any

from draft.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    One client connection, bound to the session code in its URL.

    Session-layer code only talks to this interface, so dispatch and
    broadcast can be tested without a real socket.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str: ...

    @property
    @abstractmethod
    def session_code(self) -> str:
        """Session code from the WebSocket path (/ws/{session_code})."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        return decode(await self.receive_bytes())
