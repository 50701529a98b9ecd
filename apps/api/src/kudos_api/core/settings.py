from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    service_name: str = "kudos-api"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./kudos.db"
    database_echo: bool = False

    # Leaderboards
    leaderboard_default_limit: int = 50
    leaderboard_max_limit: int = 100

    # Point ledger
    point_history_page_size: int = 20
    point_history_max_page_size: int = 100

    # Badge criteria
    trust_moment_default_min_rating: int = 4

    # Notification de-duplication
    notification_dedupe_ttl_seconds: int = 24 * 60 * 60
    notification_dedupe_sweep_interval_seconds: int = 60 * 60
    notification_dedupe_sweeper_enabled: bool = True

    # Email / notification settings
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_sender_email: str | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
