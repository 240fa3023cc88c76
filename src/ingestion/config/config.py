"""
Configuration management for the snapshot refresh service.

Loads settings from environment variables (and a local .env file).
"""

from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before settings are initialized
load_dotenv()


class OpenSkySettings(BaseSettings):
    """OpenSky API configuration."""

    base_url: str = Field(default="https://opensky-network.org/api")
    auth_url: str = Field(
        default="https://auth.opensky-network.org/auth/realms/opensky-network/protocol/openid-connect/token"
    )
    timeout_seconds: int = Field(default=30)
    # OAuth2 client credentials (required)
    client_id: str | None = Field(default=None)
    client_secret: str | None = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="OPENSKY_")

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


class EnrichmentSettings(BaseSettings):
    """Historical route enrichment budget."""

    # OpenSky rejects /flights/all intervals wider than 2 hours
    window_seconds: int = Field(default=2 * 60 * 60, gt=0, le=2 * 60 * 60)
    max_iterations: int = Field(default=20, ge=0)
    # Pause between consecutive historical windows
    delay_seconds: float = Field(default=1.0, ge=0)

    model_config = SettingsConfigDict(env_prefix="ENRICH_")


class SnapshotSettings(BaseSettings):
    """Snapshot write/promote/reap configuration."""

    batch_size: int = Field(default=1000, gt=0)
    write_workers: int = Field(default=4, gt=0)
    # Refuse to promote if another run moved the pointer since this run started
    compare_and_swap: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="SNAPSHOT_")


class DatabaseSettings(BaseSettings):
    """SQLite database configuration."""

    path: str = Field(default="data/snapshots.db")
    busy_timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="DB_")

    @property
    def full_path(self) -> Path:
        """Get the full path to the database file."""
        return Path(self.path)


class SchedulerSettings(BaseSettings):
    """Scheduler configuration."""

    interval_seconds: int = Field(default=300)
    # Run a refresh immediately on scheduler start
    run_on_start: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    log_file: str = Field(default="snapshots.log")
    rotation: str = Field(default="10 MB")
    retention: str = Field(default="7 days")
    # JSON lines in the log file
    serialize: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="LOG_")


class SlackSettings(BaseSettings):
    """Slack webhook alerts for refresh outcomes."""

    enabled: bool = Field(default=True)
    webhook_url: str | None = Field(default=None)
    # Refreshes run every few minutes, so success alerts are opt-in
    notify_on_success: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="SLACK_")


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""

    opensky: OpenSkySettings = Field(default_factory=OpenSkySettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    snapshot: SnapshotSettings = Field(default_factory=SnapshotSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)

    # Environment name (development, staging, production)
    environment: str = Field(default="development")
    # Named in every Slack alert
    service_name: str = Field(default="snapshot-refresh")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The application settings
    """
    return Settings()


settings = get_settings()

__all__ = [
    "Settings",
    "OpenSkySettings",
    "EnrichmentSettings",
    "SnapshotSettings",
    "DatabaseSettings",
    "SchedulerSettings",
    "LoggingSettings",
    "SlackSettings",
    "get_settings",
    "settings",
]
