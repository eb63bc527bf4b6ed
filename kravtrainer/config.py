"""
Configuration settings for the trainer.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be set through a ``KRAV_``-prefixed variable, e.g.
``KRAV_AUDIO_DIR=~/sounds`` or ``KRAV_DEFAULT_STRATEGY=roundRobin``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kravtrainer.core.constants import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_VOLUME,
    MAX_CONSECUTIVE_AUDIO_FAILURES,
    MAX_DELAY_SECONDS,
    MAX_DURATION_MINUTES,
    MAX_VOLUME,
    MIN_DELAY_SECONDS,
    MIN_DURATION_MINUTES,
    MIN_VOLUME,
    SESSION_RESTORE_WINDOW_SECONDS,
    SESSION_SAVE_INTERVAL_SECONDS,
)
from kravtrainer.session.strategies import StrategyType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KRAV_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Paths
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".kravtrainer",
        description="Directory for the state file",
    )
    state_file: Path | None = Field(
        default=None,
        description="Session snapshot file (defaults to <data_dir>/state.json)",
    )
    catalog_path: Path | None = Field(
        default=None,
        description="Technique catalog JSON (bundled catalog when unset)",
    )

    # ========================================
    # Audio
    # ========================================
    audio_dir: Path | None = Field(
        default=None,
        description="Directory holding technique audio files (silent when unset)",
    )
    audio_command: str = Field(
        default="aplay -q",
        description="External player command, may use {file} and {volume}",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )

    # ========================================
    # Session defaults
    # ========================================
    default_duration_minutes: int = Field(
        default=DEFAULT_DURATION_MINUTES,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )
    default_delay_seconds: int = Field(
        default=DEFAULT_DELAY_SECONDS,
        ge=MIN_DELAY_SECONDS,
        le=MAX_DELAY_SECONDS,
    )
    default_volume: int = Field(default=DEFAULT_VOLUME, ge=MIN_VOLUME, le=MAX_VOLUME)
    default_strategy: StrategyType = Field(default=StrategyType.WEIGHTED_RANDOM)

    # ========================================
    # Engine tuning
    # ========================================
    restore_window_seconds: int = Field(
        default=SESSION_RESTORE_WINDOW_SECONDS,
        gt=0,
        description="Snapshots older than this are discarded",
    )
    save_interval_seconds: int = Field(
        default=SESSION_SAVE_INTERVAL_SECONDS,
        gt=0,
        description="Snapshot every N seconds of countdown",
    )
    max_consecutive_audio_failures: int = Field(
        default=MAX_CONSECUTIVE_AUDIO_FAILURES,
        gt=0,
        description="Stop the session after this many audio failures in a row",
    )

    @field_validator("data_dir", "catalog_path", "audio_dir", "state_file", mode="after")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @property
    def resolved_state_file(self) -> Path:
        return self.state_file or self.data_dir / "state.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
