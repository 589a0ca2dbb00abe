"""
Configuration for flatdoc.

Uses pydantic-settings for environment variable loading. A StoreSettings
instance is also the "configuration object" form accepted by Database.

Invariants:
    - All settings have sensible defaults for local development
    - results_as_hash only changes the shape of returned rows, never stored data

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

LOG_FORMATS = ("text", "json")


class StoreSettings(BaseSettings):
    """Store configuration loaded from environment."""

    # Backing SQLite file
    name: str = Field(default="flatdoc.db", description="SQLite database file path")
    results_as_hash: bool = Field(default=False, description="Return rows as column->value dicts")

    # SQLite tuning, applied only to connections the store opens itself
    wal_mode: bool = Field(default=True, description="Enable SQLite WAL journal mode")
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout")
    cache_size_pages: int = Field(default=-64000, description="SQLite cache size (negative = KB)")

    # Write behaviour
    atomic_writes: bool = Field(
        default=False,
        description="Wrap multi-pair insert/update calls in a transaction",
    )
    legacy_paths: bool = Field(
        default=False,
        description="Resolve mapping paths by first matching key name",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="Log format (text, json)")

    model_config = {"env_prefix": "FLATDOC_"}

    @field_validator("busy_timeout_ms")
    @classmethod
    def _non_negative_timeout(cls, value: int) -> int:
        if value < 0:
            raise ValueError("busy_timeout_ms must be >= 0")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of: {', '.join(LOG_FORMATS)}")
        return value

    def log_config(self) -> None:
        """Log the loaded settings."""
        logger.info(
            "Store configuration loaded",
            extra={
                "db_name": self.name,
                "results_as_hash": self.results_as_hash,
                "wal_mode": self.wal_mode,
                "atomic_writes": self.atomic_writes,
                "legacy_paths": self.legacy_paths,
                "log_level": self.log_level,
            },
        )
