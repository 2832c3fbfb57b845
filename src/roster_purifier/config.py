"""Configuration management for the roster purifier.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
ROSTER_ prefix, or via a .env file in the project root.

The roster layout itself (date column, name column, row and column limits)
is a fixed contract and deliberately not configurable here.

Environment Variables:
    ROSTER_MAX_FILE_SIZE_MB: Maximum upload size in MB (default: 10)
    ROSTER_EXPORT_FILENAME_PREFIX: Prefix for exported workbooks
        (default: Processed_Roster_)
    ROSTER_REVIEW_SESSION_TTL_MINUTES: Lifetime of review sessions (default: 60)
    ROSTER_LOG_LEVEL: Logging level (default: INFO)
    ROSTER_DEBUG: Enable debug mode (default: false)
    ROSTER_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    ROSTER_SERVER_HOST: Server bind host (default: 0.0.0.0)
    ROSTER_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from datetime import timedelta
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        ROSTER_LOG_LEVEL=DEBUG
        ROSTER_MAX_FILE_SIZE_MB=25
    """

    model_config = SettingsConfigDict(
        env_prefix="ROSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # File Settings
    # =========================================================================

    max_file_size_mb: int = 10
    """Maximum roster or staff-list upload size in megabytes."""

    export_filename_prefix: str = "Processed_Roster_"
    """Prefix of exported workbook names; the month key and extension follow."""

    # =========================================================================
    # Review Session Settings
    # =========================================================================

    review_session_ttl_minutes: int = 60
    """How long a processed roster stays available for review and export."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("export_filename_prefix")
    @classmethod
    def validate_export_prefix(cls, v: str) -> str:
        """Reject prefixes that would escape the download filename."""
        if "/" in v or "\\" in v:
            raise ValueError("export_filename_prefix must not contain path separators")
        return v

    @field_validator("review_session_ttl_minutes")
    @classmethod
    def validate_session_ttl(cls, v: int) -> int:
        """Validate session TTL is positive."""
        if v < 1:
            raise ValueError(f"review_session_ttl_minutes must be at least 1, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def review_session_ttl(self) -> timedelta:
        """Get the review session TTL as a timedelta."""
        return timedelta(minutes=self.review_session_ttl_minutes)

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "export_filename_prefix": self.export_filename_prefix,
            "review_session_ttl_minutes": self.review_session_ttl_minutes,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are unsafe outside development.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}, "
        f"review_session_ttl_minutes={s.review_session_ttl_minutes}"
    )


# Create the global settings instance
settings = Settings()
