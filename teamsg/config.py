"""Configuration helpers for the strokes-gained service."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class _Settings(BaseSettings):
    data_dir: Path = Field(default=Path("data"), alias="TEAMSG_DATA_DIR")
    fetch_timeout_s: float = Field(default=5.0, gt=0, alias="TEAMSG_FETCH_TIMEOUT_S")
    fetch_retries: int = Field(default=2, ge=0, alias="TEAMSG_FETCH_RETRIES")
    leaderboard_max_rows: int = Field(
        default=2000, ge=1, alias="TEAMSG_LEADERBOARD_MAX_ROWS"
    )
    leaderboard_default_days: int = Field(
        default=180, ge=1, alias="TEAMSG_LEADERBOARD_DEFAULT_DAYS"
    )
    rolling_window: int = Field(default=10, ge=1, alias="TEAMSG_ROLLING_WINDOW")
    short_game_threshold_yd: float = Field(
        default=30.0, gt=0, alias="TEAMSG_SHORT_GAME_THRESHOLD_YD"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Return cached application settings."""

    return _Settings()  # type: ignore[call-arg]


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


__all__ = ["get_settings", "reset_settings_cache"]
