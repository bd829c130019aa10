"""Application settings and configuration."""

import logging
from typing import Literal

from pydantic import Field, field_validator  # type: ignore
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: Literal["dev", "staging", "prod", "test"] = Field(default="dev")
    PROJECT_NAME: str = Field(default="Store Audit")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Question import
    IMPORT_MAX_QUESTIONS: int = Field(default=500)
    IMPORT_DEFAULT_DEPARTMENT_ICON: str = Field(default="Building2")
    IMPORT_FILE_ENCODING: str = Field(default="utf-8")

    # Defaults for blank points columns
    DEFAULT_POINTS_YES: int = Field(default=5, ge=0)
    DEFAULT_POINTS_PARTIAL: int = Field(default=3, ge=0)
    DEFAULT_POINTS_NO: int = Field(default=0, ge=0)

    # CSV downloads
    DOWNLOAD_RELEASE_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    EXPORT_STAGING_DIR: str | None = Field(default=None)  # None = system temp dir

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown LOG_LEVEL '{v}'")
        return level

    @field_validator("IMPORT_MAX_QUESTIONS")
    @classmethod
    def import_cap_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("IMPORT_MAX_QUESTIONS must be at least 1")
        return v


# Global settings instance
settings = Settings()
