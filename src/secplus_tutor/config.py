"""
Configuration settings for the tutor.

Uses Pydantic Settings so every value can be overridden with a SECPLUS_*
environment variable or a .env file in the working directory.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".secplus_tutor" / "tutor.db")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SECPLUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    db_path: str = Field(default=DEFAULT_DB_PATH, description="SQLite progress database")
    user_id: str = Field(default="local", description="Learner whose progress is read and written")

    training_deck_size: int = Field(default=20, ge=1)
    test_length: int = Field(default=35, ge=1)
    hard_mode_count: int = Field(default=35, ge=1)
    distractor_count: int = Field(default=3, ge=1)

    log_level: str = Field(default="WARNING", description="loguru level for the terminal app")


@lru_cache
def get_settings() -> Settings:
    return Settings()
