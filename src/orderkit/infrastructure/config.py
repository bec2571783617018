"""Runtime settings, read from ``ORDERKIT_*`` environment variables or a .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ORDERKIT_", env_file=".env", extra="ignore"
    )

    # Storage
    data_dir: Path = Path("data")
    # Saves run on a worker thread; the CLI drains it when a command exits.
    background_writes: bool = True

    # Logging
    log_level: str = "WARNING"

    # Business defaults
    currency: str = "CRC"
    upcoming_hours: int = 24


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
