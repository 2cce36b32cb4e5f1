"""
Configuration settings for the FeynmanMath tutor.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Local Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".feynman",
        description="Directory holding the local key-value database",
    )
    db_path: Path | None = Field(
        default=None,
        description="Explicit SQLite path (defaults to <data_dir>/state.db)",
    )

    # ========================================
    # AI Integration (problem generation / tutoring)
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    ai_model: str = Field(
        default="gemini-2.0-flash",
        description="Model used for problems, feedback and study reports",
    )
    tutor_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for tutoring replies",
    )

    # ========================================
    # Accounts
    # ========================================
    min_password_length: int = Field(
        default=6,
        description="Minimum length accepted when a user sets a new password",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    @property
    def database_path(self) -> Path:
        """Resolved SQLite database location."""
        return self.db_path or self.data_dir / "state.db"

    def has_ai_configured(self) -> bool:
        """Check if the Gemini provider can be used."""
        return bool(self.gemini_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
