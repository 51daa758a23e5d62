"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen after
initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import (
    BusyTimeoutMs,
    CommandPrefixStr,
    HistoryLimit,
    PositiveFloat,
    PositiveInt,
    VolumePercent,
)

SnowflakeTuple = Annotated[tuple[int, ...], NoDecode]


def _parse_snowflakes(value: object) -> tuple[int, ...]:
    """Accept ``"1,2"``, ``[1, 2]`` or ``(1, 2)`` and return positive snowflakes."""
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",") if p.strip()]
        try:
            ids = tuple(int(p) for p in parts)
        except ValueError:
            raise ValueError(ErrorMessages.INVALID_SNOWFLAKE_LIST.format(value=value)) from None
    elif isinstance(value, list | tuple):
        ids = tuple(int(v) for v in value)
    else:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE_LIST.format(value=value))

    for snowflake in ids:
        if not 0 < snowflake < 2**64:
            raise ValueError(ErrorMessages.INVALID_SNOWFLAKE_LIST.format(value=value))
    return ids


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/bot.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: BusyTimeoutMs = Field(
        default=5000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    profile_cache_ttl_s: PositiveFloat = 300.0

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: CommandPrefixStr = Field(
        default="!",
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    owner_ids: SnowflakeTuple = Field(
        default_factory=tuple, validation_alias=AliasChoices("owner_ids", "owners")
    )
    guild_ids: SnowflakeTuple = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    sync_on_startup: bool = True

    @field_validator("owner_ids", "guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: object) -> tuple[int, ...]:
        return _parse_snowflakes(v)


class AudioSettings(BaseModel):
    """Audio playback configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    default_volume: VolumePercent = 100
    history_limit: HistoryLimit = 50
    max_resolve_failures: PositiveInt = 3
    lock_timeout_s: PositiveFloat = 10.0
    prefetch_ttl_s: PositiveFloat = 600.0
    connect_timeout_s: PositiveFloat = 10.0
    ffmpeg_before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    ffmpeg_options: str = "-vn"
    ytdlp_format: str = "bestaudio/best"
    search_default: str = "ytsearch"
    max_playlist_tracks: PositiveInt = 100
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )


class Settings(BaseSettings):
    """Application settings container.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__BOT_TOKEN, DISCORD__GUILD_IDS=1,2 (nested with ``__``)
    - AUDIO__DEFAULT_VOLUME, AUDIO__HISTORY_LIMIT, ...
    - DATABASE__URL, DATABASE__PROFILE_CACHE_TTL_S, ...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(valid_levels))
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded from, in order of precedence:
    1. Environment variables
    2. .env file (if present)
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
