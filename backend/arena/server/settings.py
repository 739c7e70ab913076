"""Arena server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ArenaServerSettings(BaseSettings):
    model_config = {"env_prefix": "ARENA_"}

    cors_origins: list[str] = ["http://localhost:5173"]
    database_path: str = Field(default="backend/arena.db", min_length=1)
    log_dir: str = Field(default="backend/logs/arena", min_length=1)

    # credit economy: applied after every decisive match, never after a tie
    winner_reward: int = Field(default=50, ge=0)
    loser_penalty: int = Field(default=20, ge=0)

    chat_history_limit: int = Field(default=50, ge=1, le=200)

    # per-connection inbound frame budget
    rate_limit_rate: float = Field(default=20.0, gt=0)
    rate_limit_burst: int = Field(default=40, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

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
