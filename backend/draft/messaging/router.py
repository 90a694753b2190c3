from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from draft.logic.exceptions import DraftRuleError
from draft.messaging.types import (
    ErrorMessage,
    JoinGameMessage,
    PickPlayerMessage,
    PingMessage,
    PlayerReadyMessage,
    SessionErrorCode,
    parse_client_message,
)
from shared.dal.session_repository import ConcurrentModificationError

if TYPE_CHECKING:
    from draft.messaging.protocol import ConnectionProtocol
    from draft.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes decoded client frames to the session manager.

    Draft rule violations and store failures are reported to the
    originating connection only; nothing is broadcast for a failed action.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.INVALID_MESSAGE, str(e))
            return

        if isinstance(message, PingMessage):
            await self._session_manager.handle_ping(connection)
            return

        if message.session_code != connection.session_code:
            await self._send_error(
                connection,
                SessionErrorCode.SESSION_MISMATCH,
                f"Connected to game {connection.session_code}, not {message.session_code}",
            )
            return

        await self._handle_draft_action(connection, message)

    async def _handle_draft_action(
        self,
        connection: ConnectionProtocol,
        message: JoinGameMessage | PlayerReadyMessage | PickPlayerMessage,
    ) -> None:
        try:
            if isinstance(message, JoinGameMessage):
                await self._session_manager.join_game(connection, message.participant_id)
            elif isinstance(message, PlayerReadyMessage):
                await self._session_manager.handle_ready(connection, message.participant_id)
            elif isinstance(message, PickPlayerMessage):
                await self._session_manager.handle_pick(
                    connection,
                    message.participant_id,
                    message.picked_player_id,
                )
        except DraftRuleError as e:
            logger.info("%s rejected for %s: %s", message.type, connection.connection_id, e.message)
            await self._send_error(connection, SessionErrorCode(e.code.value), e.message)
        except (ConcurrentModificationError, sqlite3.Error) as e:
            logger.warning("%s failed for %s: %s", message.type, connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.ACTION_FAILED, "Action could not be saved, try again")

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.unregister_connection(connection)
