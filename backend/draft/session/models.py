from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from draft.messaging.protocol import ConnectionProtocol


@dataclass
class Subscriber:
    """A connection that has joined a session and receives its game-update broadcasts.

    Lifecycle:
    - Created by join-game once the participant id is found in the session
    - Replaced if the same connection joins again
    - Removed when the connection is unregistered (disconnect)
    """

    connection: ConnectionProtocol
    session_code: str
    participant_id: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id
