"""
Application configuration using Pydantic Settings.

Centralizes all configuration with environment variable support.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Telegram
    telegram_bot_token: str = Field(
        default="",
        validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "BOT_TOKEN"),
    )
    backup_channel_id: int = 0

    # Ingress authentication (static bearer token)
    relay_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_API_KEY", "KOYEB_API_KEY"),
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Downloaders
    cookies_file: str = "/app/cookies.txt"
    ytdlp_binary: str = "yt-dlp"
    temp_dir: str = str(Path(tempfile.gettempdir()) / "media-relay")

    # Relay
    max_part_size_mb: int = 50

    # Timeouts (seconds)
    direct_download_timeout_seconds: float = 600.0
    download_timeout_seconds: float = 1800.0

    # Limits
    max_concurrent_jobs: int = 4

    # Housekeeping
    stale_file_max_age_hours: float = 6.0
    cleanup_interval_hours: float = 1.0

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars
        populate_by_name = True

    @property
    def max_part_size_bytes(self) -> int:
        return self.max_part_size_mb * MIB

    @property
    def temp_path(self) -> Path:
        return Path(self.temp_dir).expanduser()

    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def validate_settings(settings: Optional[Settings] = None) -> List[str]:
    """Return the names of required settings that are missing or invalid.

    The service still starts with an incomplete configuration so that
    ``/health`` can answer; the caller decides how loudly to complain.
    """
    settings = settings or get_settings()
    problems = []

    if not settings.telegram_bot_token:
        problems.append("TELEGRAM_BOT_TOKEN")
    if not settings.backup_channel_id:
        problems.append("BACKUP_CHANNEL_ID")
    if not settings.relay_api_key:
        problems.append("RELAY_API_KEY")
    if settings.max_part_size_mb <= 0:
        problems.append("MAX_PART_SIZE_MB")
    if settings.max_concurrent_jobs <= 0:
        problems.append("MAX_CONCURRENT_JOBS")

    return problems
