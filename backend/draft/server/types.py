from pydantic import BaseModel, ConfigDict, Field

from draft.logic.room import COMPLETED_SEASON_WEEKS, FIRST_SEASON
from draft.messaging.types import SessionCode

_NAME_FIELD = Field(min_length=1, max_length=50)


class CreateGameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    player_name: str = _NAME_FIELD


class JoinGameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    game_code: SessionCode
    player_name: str = _NAME_FIELD


class LineupRequest(BaseModel):
    """Players to total for one week, as sent by the lineup builder."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    player_ids: list[str] = Field(max_length=50)
    season: int = Field(ge=FIRST_SEASON)
    week: int = Field(ge=1, le=COMPLETED_SEASON_WEEKS)
