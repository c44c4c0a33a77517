"""Configuration service for managing application settings."""

import json
import os
from dataclasses import replace
from pathlib import Path

import structlog

from ..models import AppConfig
from .errors import ConfigurationError

log = structlog.stdlib.get_logger()

API_KEY_ENV_VAR = "STEAM_API_KEY"


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for managing application configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".steam-cli" / "config.json"
        log.debug("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> AppConfig:
        """Load configuration from file or return default configuration."""
        if not self.config_path.exists():
            log.debug("Configuration file not found, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data: dict[str, str | int | float | None] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return AppConfig()

            log.debug("Configuration loaded successfully")
            return config

        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return AppConfig()

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file."""
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(validation_result.errors)}")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self._config_to_dict(config), f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully", config_path=str(self.config_path))

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def update_config(self, **changes: str | float | None) -> AppConfig:
        """Load, change and save the configuration in one step."""
        config = replace(self.load_config(), **changes)
        self.save_config(config)
        return config

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if config.api_key is not None and not config.api_key.strip():
            errors.append("api_key cannot be blank")

        if config.steam_id is not None and not config.steam_id.isdigit():
            errors.append("steam_id must be a numeric 64-bit Steam ID")

        if not isinstance(config.request_delay, (int, float)) or config.request_delay < 0:
            errors.append("request_delay must be a non-negative number")
        elif config.request_delay > 10:
            errors.append("request_delay should not exceed 10 seconds")

        if not isinstance(config.request_timeout, (int, float)) or config.request_timeout <= 0:
            errors.append("request_timeout must be a positive number")

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if config.log_level not in valid_log_levels:
            errors.append(f"log_level must be one of: {', '.join(sorted(valid_log_levels))}")

        return ValidationResult(len(errors) == 0, errors)

    def get_api_key(self, config: AppConfig | None = None) -> str | None:
        """Return the API key, preferring the environment over the file."""
        env_key = os.environ.get(API_KEY_ENV_VAR)
        if env_key:
            return env_key
        return (config or self.load_config()).api_key

    def require_credentials(self, config: AppConfig | None = None) -> tuple[str, str]:
        """Return (api_key, steam_id) or raise ConfigurationError.

        Raises:
            ConfigurationError: If either value is missing
        """
        config = config or self.load_config()
        api_key = self.get_api_key(config)
        if not api_key:
            raise ConfigurationError(
                "Steam API key not found.",
                setting="api_key",
                hint=f"Set {API_KEY_ENV_VAR} or run: steam-library config set-key <key>",
            )
        if not config.steam_id:
            raise ConfigurationError(
                "Steam ID not configured.",
                setting="steam_id",
                hint="Run: steam-library config set-user <username>",
            )
        return api_key, config.steam_id

    def _config_to_dict(self, config: AppConfig) -> dict[str, str | float | None]:
        """Convert AppConfig to dictionary for JSON serialization."""
        return {
            "api_key": config.api_key,
            "steam_id": config.steam_id,
            "username": config.username,
            "request_delay": config.request_delay,
            "request_timeout": config.request_timeout,
            "log_level": config.log_level,
        }

    def _dict_to_config(self, data: dict[str, str | int | float | None]) -> AppConfig:
        """Convert dictionary to AppConfig."""
        defaults = AppConfig()

        def optional_str(key: str) -> str | None:
            value = data.get(key)
            if value is None or value == "":
                return None
            return str(value)

        request_delay_raw = data.get("request_delay", defaults.request_delay)
        request_timeout_raw = data.get("request_timeout", defaults.request_timeout)
        log_level_raw = data.get("log_level", defaults.log_level)

        return AppConfig(
            api_key=optional_str("api_key"),
            steam_id=optional_str("steam_id"),
            username=optional_str("username"),
            request_delay=float(request_delay_raw) if isinstance(request_delay_raw, (int, float)) else defaults.request_delay,
            request_timeout=float(request_timeout_raw) if isinstance(request_timeout_raw, (int, float)) else defaults.request_timeout,
            log_level=str(log_level_raw).upper() if isinstance(log_level_raw, str) else defaults.log_level,
        )
