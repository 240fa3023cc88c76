"""Configuration module for the snapshot refresh service."""

from src.ingestion.config.config import (
    Settings,
    OpenSkySettings,
    EnrichmentSettings,
    SnapshotSettings,
    DatabaseSettings,
    SchedulerSettings,
    LoggingSettings,
    SlackSettings,
    get_settings,
    settings,
)

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
