"""
Utility modules for the resume ingestion pipeline.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants
"""

from src.utils.config import (
    AppSettings,
    PipelineSettings,
    get_settings,
    reload_settings,
    settings,
    ROOT_DIR,
    SRC_DIR,
    DATA_DIR,
)
from src.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    SUPPORTED_RESUME_MIME_TYPES,
    AuditAction,
    AuditType,
    SkillCategory,
)
from src.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    LoggerMixin,
)

__all__ = [
    # Config
    "AppSettings",
    "PipelineSettings",
    "get_settings",
    "reload_settings",
    "settings",
    "ROOT_DIR",
    "SRC_DIR",
    "DATA_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "SUPPORTED_RESUME_MIME_TYPES",
    "AuditAction",
    "AuditType",
    "SkillCategory",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "LoggerMixin",
]
