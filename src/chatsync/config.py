"""
chatsync configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables and an optional .env file.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatsync.exceptions import ConfigurationError


def get_xdg_data_dir() -> str:
    """
    Get XDG-compliant data directory for chatsync.

    Follows XDG Base Directory Specification:
    - Uses $XDG_DATA_HOME/chatsync if XDG_DATA_HOME is set
    - Falls back to $HOME/.local/share/chatsync if not set
    - Returns relative path ./data if HOME not available (dev/testing)

    Returns:
        str: Path to data directory
    """
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    if xdg_data_home:
        return str(Path(xdg_data_home) / "chatsync")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "share" / "chatsync")

    return "./data"


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for chatsync logs.

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "chatsync" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "chatsync" / "logs")

    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Redmine
    redmine_url: str = ""
    redmine_human_api_key: str = ""
    redmine_assistant_api_key: str = ""
    redmine_project_id: str = ""
    redmine_human_user_id: int = 0  # Default assignee; 0 leaves tickets unassigned
    redmine_assistant_user_id: int = 0
    redmine_tracker_id: int = 1
    redmine_status_id: int = 1
    redmine_priority_id: int = 2

    # HTTP resilience
    request_timeout: float = 30.0  # Connect and read timeout in seconds
    retry_max_retries: int = 5
    retry_base_delay: float = 2.0
    retry_max_delay: float = 30.0

    # Progress store
    database_path: str = f"{get_xdg_data_dir()}/conversations.db"

    # Artifacts
    artifacts_dir: str = f"{get_xdg_data_dir()}/artifacts"
    upload_artifacts: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # Defaults to XDG state dir if empty
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True
    log_file_enabled: bool = True
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5

    @field_validator("redmine_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value not in {"standard", "json"}:
            raise ValueError(f"log_format must be 'standard' or 'json', got {value}")
        return value

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the progress store."""
        return f"sqlite:///{Path(self.database_path).expanduser()}"

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())

    def validate_for_sync(self) -> None:
        """
        Check that everything needed to talk to Redmine is present.

        Raises:
            ConfigurationError: Naming every missing option
        """
        missing = []
        for name in (
            "redmine_url",
            "redmine_human_api_key",
            "redmine_assistant_api_key",
            "redmine_project_id",
        ):
            if not getattr(self, name):
                missing.append(name.upper())
        if missing:
            raise ConfigurationError(missing)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
