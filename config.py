"""
Configuration settings for the Akshara learning core.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

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
    # Persistence
    # ========================================
    progress_storage_dir: Path = Field(
        default=Path.home() / ".akshara",
        description="Directory holding the persisted learner profile",
    )
    progress_storage_key: str = Field(
        default="kannada_learning_progress",
        description="Storage key of the learner profile",
    )

    # ========================================
    # Logging & Telemetry
    # ========================================
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr by the CLI",
    )
    telemetry_max_errors: int = Field(
        default=50,
        ge=1,
        description="Number of recent errors kept in memory by the error reporter",
    )

    # ========================================
    # Spaced Repetition (SM-2)
    # ========================================
    srs_initial_ease: float = Field(
        default=2.5,
        ge=1.3,
        description="Ease factor assigned on an item's first review",
    )
    srs_minimum_ease: float = Field(
        default=1.3,
        ge=1.3,
        description="Ease factor floor (prevents interval collapse)",
    )
    srs_expected_response_ms: int = Field(
        default=8000,
        ge=1,
        description="Answer time separating hesitant from struggling recall",
    )

    # ========================================
    # Recommendation Engine
    # ========================================
    weak_area_min_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts needed before a category can be judged weak",
    )
    weak_area_accuracy: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Accuracy below which a category counts as weak",
    )
    review_share: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Share of selected content reserved for due SRS reviews",
    )
    velocity_window_days: int = Field(
        default=7,
        ge=1,
        description="Default window for learning velocity analysis",
    )

    def get_srs_config(self) -> dict[str, Any]:
        """Get SM-2 parameters as keyword arguments for SM2Config."""
        return {
            "initial_ease": self.srs_initial_ease,
            "minimum_ease": self.srs_minimum_ease,
            "expected_response_ms": self.srs_expected_response_ms,
        }

    def get_engine_config(self) -> dict[str, Any]:
        """Get recommendation thresholds as keyword arguments for EngineConfig."""
        return {
            "weak_area_min_attempts": self.weak_area_min_attempts,
            "weak_area_accuracy": self.weak_area_accuracy,
            "review_share": self.review_share,
            "velocity_window_days": self.velocity_window_days,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
