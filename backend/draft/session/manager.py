from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from draft.messaging.types import ErrorMessage, GameUpdateMessage, PongMessage, SessionErrorCode
from draft.session.broadcast import broadcast_to_subscribers
from draft.session.models import Subscriber

if TYPE_CHECKING:
    from draft.logic.service import DraftService
    from draft.logic.state import DraftSession
    from draft.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """
    Tracks connections and their session subscriptions.

    Draft actions are delegated to the DraftService, which linearizes them
    per session. The full snapshot of each committed action is sent to every
    subscriber while the session is still locked, so updates arrive in commit
    order. DraftRuleError and store errors propagate to the caller (the
    message router) untouched.
    """

    def __init__(self, draft_service: DraftService) -> None:
        self._draft_service = draft_service
        self._connections: dict[str, ConnectionProtocol] = {}
        self._subscribers: dict[str, Subscriber] = {}  # connection_id -> Subscriber

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        subscriber = self._subscribers.pop(connection.connection_id, None)
        if subscriber is not None:
            logger.info(
                "subscriber left",
                session_code=subscriber.session_code,
                participant_id=subscriber.participant_id,
            )

    def subscribers_of(self, session_code: str) -> list[Subscriber]:
        return [s for s in self._subscribers.values() if s.session_code == session_code]

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def join_game(self, connection: ConnectionProtocol, participant_id: str) -> None:
        """Subscribe the connection to its session and send it the current snapshot.

        Runs under the session lock so no commit can slip in between the
        snapshot read and the subscription.
        """
        await self._draft_service.watch(
            connection.session_code,
            lambda session: self._subscribe(connection, participant_id, session),
        )

    async def _subscribe(self, connection: ConnectionProtocol, participant_id: str, session: DraftSession) -> None:
        if session.find_participant(participant_id) is None:
            await self._send_error(
                connection,
                SessionErrorCode.NOT_IN_SESSION,
                f"Participant {participant_id} is not in game {session.code}",
            )
            return

        self._subscribers[connection.connection_id] = Subscriber(
            connection=connection,
            session_code=session.code,
            participant_id=participant_id,
        )
        structlog.contextvars.bind_contextvars(session_code=session.code, participant_id=participant_id)
        logger.info("subscriber joined")
        await connection.send_message(self._snapshot(session))

    async def handle_ready(self, connection: ConnectionProtocol, participant_id: str) -> None:
        subscriber = await self._require_subscriber(connection, participant_id)
        if subscriber is None:
            return
        await self._draft_service.ready(subscriber.session_code, participant_id, on_commit=self.broadcast_session)

    async def handle_pick(self, connection: ConnectionProtocol, participant_id: str, player_id: str) -> None:
        subscriber = await self._require_subscriber(connection, participant_id)
        if subscriber is None:
            return
        await self._draft_service.pick(
            subscriber.session_code,
            participant_id,
            player_id,
            on_commit=self.broadcast_session,
        )

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump())

    async def broadcast_session(self, session: DraftSession) -> None:
        """Send the full snapshot to every connection subscribed to the session."""
        await broadcast_to_subscribers(self.subscribers_of(session.code), self._snapshot(session))

    async def _require_subscriber(self, connection: ConnectionProtocol, participant_id: str) -> Subscriber | None:
        """The connection's subscription, if it joined as `participant_id`; otherwise send an error."""
        subscriber = self._subscribers.get(connection.connection_id)
        if subscriber is None or subscriber.participant_id != participant_id:
            await self._send_error(
                connection,
                SessionErrorCode.NOT_IN_SESSION,
                "Send join-game for this participant first",
            )
            return None
        return subscriber

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        logger.warning("session error sent to client", error_code=code.value, error_message=message)
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    @staticmethod
    def _snapshot(session: DraftSession) -> dict:
        return GameUpdateMessage(session=session).model_dump(mode="json")
