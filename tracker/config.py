"""
Configuration for the finance tracker.

Read from environment variables prefixed ``FINANCE_TRACKER_`` (or a ``.env``
file) with pydantic-settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage_path: Path = Field(
        default=Path("data/finance-storage.json"),
        description="JSON file holding the persisted key-value map"
    )
    export_dir: Path = Field(
        default=Path("."),
        description="Directory export files are written to"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_json: bool = Field(
        default=False,
        description="Render log lines as JSON instead of console text"
    )
    trend_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Number of months shown in the cash-flow trend"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
