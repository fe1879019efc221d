"""
Configuration settings for the WordPath learning engine front end.

Uses Pydantic Settings for environment variable management with .env file support.
The engine services never read these values directly; the CLI passes them in.
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
        env_prefix="WORDPATH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    deck_path: Path = Field(
        default=Path.home() / ".wordpath" / "deck.json",
        description="JSON document holding the item collection",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr",
    )

    # ========================================
    # Daily Session
    # ========================================
    preview_count: int = Field(
        default=3,
        ge=0,
        description="New words previewed per daily session",
    )
    quiz_goal: int = Field(
        default=6,
        ge=0,
        description="Quiz questions per daily session",
    )

    # ─── Queue limits ───────────────────────────────────────────────────────────
    preview_queue_limit: int = Field(default=20, ge=1)
    quiz_queue_limit: int = Field(default=20, ge=1)
    deep_learn_queue_limit: int = Field(default=10, ge=1)
    review_limit: int = Field(
        default=20,
        ge=1,
        description="Maximum items listed by the SM-2 review queue",
    )

    # ========================================
    # Scoring
    # ========================================
    target_score: int = Field(
        default=160,
        ge=130,
        le=170,
        description="Target verbal score used for readiness",
    )

    # ========================================
    # Answers
    # ========================================
    max_answer_length: int = Field(
        default=200,
        ge=1,
        description="Free-text answers are truncated to this length",
    )

    random_seed: int | None = Field(
        default=None,
        description="Seed for question shuffling (None = nondeterministic)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
