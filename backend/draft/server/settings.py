"""Draft server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from draft.logic.room import COMPLETED_SEASON_WEEKS, FIRST_SEASON, build_week_pool
from draft.stats.sleeper import DEFAULT_BASE_URL
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class DraftServerSettings(BaseSettings):
    model_config = {"env_prefix": "DRAFT_"}

    database_path: str = Field(default="backend/data/draft.db", min_length=1)
    log_dir: str = Field(default="backend/logs/draft", min_length=1)
    cors_origins: list[str] = ["http://localhost:5173"]

    # Season/week pool for new games. Past seasons use all 18 weeks; the
    # current season only the weeks whose games are complete.
    current_season: int = Field(default=2025, ge=FIRST_SEASON)
    current_season_completed_weeks: int = Field(default=0, ge=0, le=COMPLETED_SEASON_WEEKS)

    enforce_roster_slots: bool = False

    stat_fetch_attempts: int = Field(default=3, ge=1, le=10)
    stat_fetch_retry_delay: float = Field(default=1.0, ge=0.0, le=30.0)

    sleeper_base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1)
    sleeper_timeout: float = Field(default=30.0, gt=0.0)
    scheduler_enabled: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @model_validator(mode="after")
    def _validate_week_pool(self) -> Self:
        build_week_pool(self.current_season, self.current_season_completed_weeks)
        return self

    @property
    def week_pool(self) -> dict[int, int]:
        return build_week_pool(self.current_season, self.current_season_completed_weeks)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
