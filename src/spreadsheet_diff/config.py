"""Configuration management for spreadsheet diffing.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SSD_ prefix, or via a .env file in the project root.

Environment Variables:
    SSD_MIN_INFLATE_RATIO: Minimum compressed/uncompressed ratio per archive
        entry before decoding is refused (default: 0.0001, i.e. 1:10000)
    SSD_MAX_ENTRY_SIZE_MB: Maximum declared uncompressed size of any single
        archive entry in MB (default: 512)
    SSD_GUARD_MIN_ENTRY_SIZE_BYTES: Entries smaller than this are not
        ratio-checked (default: 1024)
    SSD_DEFAULT_SHEET_NAME: Sheet name used when none is given (default: Sheet1)
    SSD_DEFAULT_FONT_SIZE: Font size assumed when none is given (default: 11)
    SSD_LOG_LEVEL: Logging level (default: INFO)
    SSD_DEBUG: Enable debug mode (default: false)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spreadsheet_diff.utils.logging import configure_logging


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    All settings can be configured via environment variables prefixed with
    SSD_ or via a .env file.

    Example .env file:
        SSD_MIN_INFLATE_RATIO=0.001
        SSD_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SSD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Input Safety Settings
    # =========================================================================

    min_inflate_ratio: float = 0.0001
    """Smallest allowed compressed/uncompressed ratio; 0.0 disables the check."""

    max_entry_size_mb: int = 512
    """Largest declared uncompressed size of a single archive entry."""

    guard_min_entry_size_bytes: int = 1024
    """Entries below this uncompressed size are exempt from the ratio check."""

    # =========================================================================
    # Canonical Document Defaults
    # =========================================================================

    default_sheet_name: str = "Sheet1"
    """Sheet name used when a sheet has no name."""

    default_font_size: int = 11
    """Font size in points assumed when a cell carries none."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging."""

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

    @field_validator("min_inflate_ratio")
    @classmethod
    def validate_inflate_ratio(cls, v: float) -> float:
        """Validate ratio is between 0.0 and 1.0."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"min_inflate_ratio must be between 0.0 and 1.0, got {v}")
        return v

    @field_validator("max_entry_size_mb")
    @classmethod
    def validate_entry_size(cls, v: int) -> int:
        """Validate entry size is positive and reasonable."""
        if not 1 <= v <= 4096:
            raise ValueError(f"max_entry_size_mb must be between 1 and 4096, got {v}")
        return v

    @field_validator("guard_min_entry_size_bytes")
    @classmethod
    def validate_guard_floor(cls, v: int) -> int:
        if v < 0:
            raise ValueError(
                f"guard_min_entry_size_bytes must not be negative, got {v}"
            )
        return v

    @field_validator("default_sheet_name")
    @classmethod
    def validate_sheet_name(cls, v: str) -> str:
        """Validate the default sheet name is non-empty."""
        if not v.strip():
            raise ValueError("default_sheet_name must be a non-empty string")
        return v.strip()

    @field_validator("default_font_size")
    @classmethod
    def validate_font_size(cls, v: int) -> int:
        """Validate font size is within Excel's range."""
        if not 1 <= v <= 409:
            raise ValueError(f"default_font_size must be between 1 and 409, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_entry_size_bytes(self) -> int:
        """Get max entry size in bytes."""
        return self.max_entry_size_mb * 1024 * 1024

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary for diagnostics.

        Returns:
            Dictionary representation of all settings.
        """
        return {
            "min_inflate_ratio": self.min_inflate_ratio,
            "max_entry_size_mb": self.max_entry_size_mb,
            "guard_min_entry_size_bytes": self.guard_min_entry_size_bytes,
            "default_sheet_name": self.default_sheet_name,
            "default_font_size": self.default_font_size,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that weaken input safety.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.min_inflate_ratio == 0.0:
        logger.warning(
            "Inflate ratio check is disabled (SSD_MIN_INFLATE_RATIO=0). "
            "Untrusted spreadsheets will not be screened for decompression bombs."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"min_inflate_ratio={s.min_inflate_ratio}, "
        f"max_entry_size_mb={s.max_entry_size_mb}"
    )


def setup_logging(s: Settings | None = None) -> None:
    """Configure structured logging from settings and report the configuration.

    ``debug`` forces DEBUG output regardless of ``log_level``. Intended to be
    called once by the application embedding the package.

    Args:
        s: Settings to apply; defaults to the module-level ``settings``.
    """
    s = s or settings
    configure_logging(
        level=logging.DEBUG if s.debug else s.log_level_int,
        use_structured_formatter=True,
    )
    validate_settings_on_startup(s)


# Create the global settings instance
settings = Settings()
