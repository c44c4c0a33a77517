"""Configuration data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    api_key: str | None = None
    steam_id: str | None = None
    username: str | None = None
    request_delay: float = 0.05  # Pause between games during enrichment
    request_timeout: float = 10.0
    log_level: str = "WARNING"
