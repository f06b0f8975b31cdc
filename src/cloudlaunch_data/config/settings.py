"""Application settings management using Pydantic Settings."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get default database path in the working directory."""
    return str(Path.cwd() / "data" / "cloudlaunch.db")


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be configured via environment variables with the
    prefix `CLOUDLAUNCH_`. For example, `CLOUDLAUNCH_DATABASE_PATH`.
    """

    # Database
    database_path: str = Field(
        default_factory=_get_default_db_path,
        description="SQLite database file path",
    )

    # Export
    export_dir: str = Field(
        default_factory=lambda: str(Path.cwd()),
        description="Directory export files are written to",
    )
    export_file_prefix: str = Field(
        default="cloudlaunch",
        min_length=1,
        description="Product prefix used in export file names",
    )

    # Import
    default_import_mode: Literal["merge", "replace"] = Field(
        default="merge", description="Merge mode used when a caller does not pass one"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="CLOUDLAUNCH_", env_file=".env", env_file_encoding="utf-8"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize and validate the logging level name."""
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level
