from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, TypeAdapter

from draft.logic.state import DraftSession

# Room codes are case-insensitive on input and stored upper-case.
SessionCode = Annotated[str, Field(min_length=1, max_length=16, pattern=r"^[A-Za-z0-9]+$"), AfterValidator(str.upper)]
_ID_FIELD = Field(min_length=1, max_length=64)


class ClientMessageType(StrEnum):
    JOIN_GAME = "join-game"
    PLAYER_READY = "player-ready"
    PICK_PLAYER = "pick-player"
    PING = "ping"


class ServerMessageType(StrEnum):
    GAME_UPDATE = "game-update"
    ERROR = "error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    # Draft rule violations, mirroring DraftErrorCode.
    NOT_FOUND = "not_found"
    FULL = "full"
    ALREADY_STARTED = "already_started"
    INVALID_TRANSITION = "invalid_transition"
    NOT_YOUR_TURN = "not_your_turn"
    ALREADY_PICKED = "already_picked"
    INELIGIBLE_PICK = "ineligible_pick"
    # Transport and session errors.
    INVALID_MESSAGE = "invalid_message"
    SESSION_MISMATCH = "session_mismatch"
    NOT_IN_SESSION = "not_in_session"
    RATE_LIMITED = "rate_limited"
    ACTION_FAILED = "action_failed"


class JoinGameMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_GAME] = ClientMessageType.JOIN_GAME
    session_code: SessionCode
    participant_id: str = _ID_FIELD


class PlayerReadyMessage(BaseModel):
    type: Literal[ClientMessageType.PLAYER_READY] = ClientMessageType.PLAYER_READY
    session_code: SessionCode
    participant_id: str = _ID_FIELD


class PickPlayerMessage(BaseModel):
    type: Literal[ClientMessageType.PICK_PLAYER] = ClientMessageType.PICK_PLAYER
    session_code: SessionCode
    participant_id: str = _ID_FIELD
    picked_player_id: str = _ID_FIELD


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = JoinGameMessage | PlayerReadyMessage | PickPlayerMessage | PingMessage


class GameUpdateMessage(BaseModel):
    """Full session snapshot, sent to every subscriber after each change."""

    type: Literal[ServerMessageType.GAME_UPDATE] = ServerMessageType.GAME_UPDATE
    session: DraftSession


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: SessionErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG


_client_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a decoded frame into a typed ClientMessage. Raises ValidationError."""
    return _client_adapter.validate_python(data)
