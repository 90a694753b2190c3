"""
WebSocket transport for a draft room: `/ws/{session_code}`.

One socket serves one participant's view of one room. Client frames are
screened here (MessagePack decoding, strike count, rate limit) before the
router sees them; everything the server sends back is a MessagePack map.
"""

from __future__ import annotations

import contextlib
import re
from enum import IntEnum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from draft.messaging.encoder import DecodeError, decode
from draft.messaging.protocol import ConnectionProtocol
from draft.messaging.types import ErrorMessage, SessionErrorCode
from draft.server.rate_limit import TokenBucket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from draft.messaging.router import MessageRouter

logger = structlog.get_logger()

# Room codes are 6 characters today; the route accepts up to 16 so longer
# codes can be introduced without a client change.
_ROOM_CODE = re.compile(r"^[A-Za-z0-9]{1,16}$")

# A draft client sends a handful of frames per pick; 20/sec with a burst of
# 40 leaves room for reconnect storms of join-game + ping.
_RATE_LIMIT_RATE = 20.0
_RATE_LIMIT_BURST = 40

_MAX_DECODE_STRIKES = 5


class DraftCloseCode(IntEnum):
    INVALID_SESSION_CODE = 4000
    TOO_MANY_DECODE_ERRORS = 4004


@contextlib.contextmanager
def _as_connection_error() -> Iterator[None]:
    try:
        yield
    except WebSocketDisconnect:
        raise ConnectionError("draft socket already closed") from None


class WebSocketConnection(ConnectionProtocol):
    """ConnectionProtocol over a Starlette WebSocket bound to one room code."""

    def __init__(self, websocket: WebSocket, session_code: str, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._session_code = session_code
        self._connection_id = connection_id or uuid4().hex

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def session_code(self) -> str:
        return self._session_code

    async def send_bytes(self, data: bytes) -> None:
        with _as_connection_error():
            await self._websocket.send_bytes(data)

    async def receive_bytes(self) -> bytes:
        with _as_connection_error():
            return await self._websocket.receive_bytes()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect):
            await self._websocket.close(code=code, reason=reason)


class _FrameRejectedError(Exception):
    def __init__(self, code: SessionErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class _FrameScreen:
    """Decode and throttle one connection's inbound frames.

    Consecutive undecodable frames count as strikes; any decodable frame
    clears them. Decoding happens before throttling so a flood of garbage
    still reaches the strike limit.
    """

    def __init__(self) -> None:
        self._bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
        self.strikes = 0

    @property
    def exhausted(self) -> bool:
        return self.strikes >= _MAX_DECODE_STRIKES

    def admit(self, raw: bytes) -> dict[str, Any]:
        try:
            data = decode(raw)
        except DecodeError as e:
            self.strikes += 1
            raise _FrameRejectedError(SessionErrorCode.INVALID_MESSAGE, str(e)) from e
        self.strikes = 0
        if not self._bucket.consume():
            raise _FrameRejectedError(SessionErrorCode.RATE_LIMITED, "Too many messages")
        return data


async def _incoming(connection: WebSocketConnection) -> AsyncIterator[bytes]:
    """Raw frames until the client goes away."""
    while True:
        try:
            yield await connection.receive_bytes()
        except (ConnectionError, RuntimeError):
            return


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    requested = websocket.path_params["session_code"]
    if not _ROOM_CODE.match(requested):
        await websocket.close(code=DraftCloseCode.INVALID_SESSION_CODE, reason="invalid_session_code")
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket, session_code=requested.upper())
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("draft socket opened", session_code=connection.session_code)
    await router.handle_connect(connection)

    screen = _FrameScreen()
    try:
        async for raw in _incoming(connection):
            try:
                data = screen.admit(raw)
            except _FrameRejectedError as rejected:
                logger.warning("frame rejected", error_code=rejected.code, strikes=screen.strikes)
                await connection.send_message(ErrorMessage(code=rejected.code, message=rejected.message).model_dump())
                if screen.exhausted:
                    await connection.close(
                        code=DraftCloseCode.TOO_MANY_DECODE_ERRORS,
                        reason="too_many_decode_errors",
                    )
                    break
                continue
            await router.handle_message(connection, data)
    except (ConnectionError, RuntimeError):
        logger.debug("draft socket dropped mid-send")
    finally:
        logger.info("draft socket closed", session_code=connection.session_code)
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
