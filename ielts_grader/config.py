"""
Configuration management for the IELTS Grader.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default, so the grading core works without any
    environment at all. Invalid values raise a validation error on load.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    default_points: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        le=100,
        description="Points awarded per correct item when a question sets none",
    )

    exact_match_max_length: int = Field(
        default=2,
        ge=0,
        le=20,
        description="Correct answers up to this length only accept an exact match",
    )

    writing_credit_ratio: Decimal = Field(
        default=Decimal("0.6"),
        ge=0,
        le=1,
        description="Share of a writing task's points given for any non-empty answer",
    )

    allow_prefix_fallback: bool = Field(
        default=True,
        description=(
            "Resolve answers stored under editor-generated keys (mcq_*, q_*, ...) "
            "when no key matches the question id or number"
        ),
    )

    # ==========================================================================
    # CLI Configuration
    # ==========================================================================
    log_level: LogLevel = Field(
        default="WARNING",
        description="Logging level used by the command line interface",
    )

    output_directory: Path = Field(
        default=Path("./output"),
        description="Directory for JSON artifacts written by the CLI",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    def ensure_output_directory(self) -> Path:
        """Create the output directory on first use and return it."""
        self.output_directory.mkdir(parents=True, exist_ok=True)
        return self.output_directory


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
