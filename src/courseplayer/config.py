"""Runtime settings read from the environment or a local ``.env`` file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .rewards import DEFAULT_REWARD_POLICY, RewardPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="COURSEPLAYER_", env_file=".env", extra="ignore")

    db_path: Path = Field(default=Path(".courseplayer") / "progress.db")
    course_path: Path | None = None
    reward_policy: RewardPolicy = DEFAULT_REWARD_POLICY
    log_level: str = "WARNING"


def get_settings() -> Settings:
    """Read settings fresh from the environment."""
    return Settings()
