"""
Configuration Management for Cash Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The accounting core itself has almost nothing to configure; the knobs
below only tune how a build talks to the document store.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Journal build
    inference_concurrency: int = Field(
        default=6,
        ge=1,
        le=32,
        description="Maximum record inferences in flight during a journal build"
    )
    progress_report_steps: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many progress updates a journal build reports"
    )

    # Data source
    backup_path: Optional[Path] = Field(
        default=None,
        description="Data dump to read documents from; in-memory store when unset"
    )

    @field_validator('backup_path')
    @classmethod
    def validate_backup_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Warn if the dump doesn't exist (but don't fail - might be mounted later)."""
        if v is not None and not v.exists():
            import warnings
            warnings.warn(
                f"Data dump not found at {v}. "
                "Make sure it exists before building the journal."
            )
        return v


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
