"""Configuration management for cmdialog."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_utils import LogProfile, configure_logging

DEFAULT_COMMAND_FILE = Path.home() / ".cmdialog" / "dialog.log"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CMDIALOG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Command file
    command_file: Path = Field(default=DEFAULT_COMMAND_FILE, description="Path of the shared command file")
    debounce_seconds: float = Field(default=0.1, gt=0, description="Quiet period before a read pass")

    # Subprocess execution
    command_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for execute* commands")
    working_directory: Optional[Path] = Field(None, description="Working directory for execute* commands")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: LogProfile = Field(default="default", description="Log profile (default, rich)")


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        **overrides: Explicit values that win over the environment and ``.env``

    Returns:
        Settings instance
    """
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})

    configure_logging(profile=settings.log_profile, level=settings.log_level)

    return settings
