"""Application settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .storage import DEFAULT_STORAGE_KEY


class Settings(BaseSettings):
    """Where progress is stored and how logs are rendered.

    Game tuning constants live in the round modules.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARCANEPATHS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Path(".arcanepaths")
    database_name: str = "progress.db"
    storage_key: str = DEFAULT_STORAGE_KEY

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="plain", pattern="^(json|plain)$")

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_name


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
