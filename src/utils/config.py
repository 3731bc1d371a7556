"""
Configuration management for the resume ingestion pipeline.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.constants import SUPPORTED_RESUME_MIME_TYPES


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
SRC_DIR = ROOT_DIR / "src"
DATA_DIR = ROOT_DIR / "data"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "resume_ingest"
    username: str | None = None
    password: str | None = None

    @property
    def connection_string(self) -> str:
        """Generate MongoDB connection string."""
        if self.username and self.password:
            return f"mongodb://{self.username}:{self.password}@{self.host}:{self.port}"
        return f"mongodb://{self.host}:{self.port}"


class PipelineSettings(BaseSettings):
    """Resume ingestion pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    # Worker pool
    worker_count: int = Field(default=4, ge=1)
    queue_poll_seconds: float = Field(default=1.0, gt=0)

    # Retry policy (enforced by the dispatcher, consulted by the coordinator)
    max_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=5.0, ge=0)

    # Time bounds
    stage_timeout_seconds: float = Field(default=120.0, gt=0)
    max_job_duration_seconds: float = Field(default=900.0, gt=0)
    watchdog_interval_seconds: float = Field(default=30.0, gt=0)
    status_retention_hours: int = Field(default=24, ge=1)

    # Status store backend
    status_backend: Literal["memory", "mongodb"] = "memory"

    allowed_mime_types: tuple[str, ...] = SUPPORTED_RESUME_MIME_TYPES

    @field_validator("allowed_mime_types")
    @classmethod
    def normalize_mime_types(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Lowercase and strip configured MIME types."""
        return tuple(m.strip().lower() for m in v if m.strip())


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "resume_ingest.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    audit_file_path: Path = ROOT_DIR / "logs" / "pipeline_audit.log"
    audit_rotation: str = "1 week"
    audit_retention: str = "90 days"
    console_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "Resume-Ingest"
    version: str = "0.1.0"
    description: str = "Asynchronous resume ingestion pipeline"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings


# Convenience exports
settings = get_settings()
