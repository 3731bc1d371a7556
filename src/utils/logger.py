"""
Logging for the resume ingestion pipeline.

Loguru drives three sinks: colored console output, a rotating application
log, and an audit log that only receives records bound with an
``audit_type``. Audit records carry the job and candidate ids as extras so
one job's outcome can be found with a plain grep.
"""

import sys
from collections.abc import Mapping
from typing import Any, Optional, Union

from loguru import logger

from src.utils.config import LoggingSettings, get_settings
from src.utils.constants import AuditAction, AuditType

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {
        "password", "passwd", "pwd", "secret", "token", "api_key",
        "apikey", "auth", "credential", "private_key", "access_token",
        "refresh_token", "ssn",
    }
)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

AUDIT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[audit_type]} | {extra[action]} | "
    "job={extra[job_id]} candidate={extra[candidate_id]} | {message}"
)


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Worker threads log concurrently, so the file sinks are enqueued.
    """
    settings = get_settings()
    log_settings = settings.logging

    logger.remove()

    # diagnose puts local variables into tracebacks; development only
    diagnose = settings.debug and settings.environment == "development"

    if log_settings.console_output:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_settings.level,
            colorize=True,
            backtrace=True,
            diagnose=diagnose,
        )

    log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_settings.file_path,
        format=log_settings.format,
        level=log_settings.level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        backtrace=True,
        diagnose=diagnose,
        enqueue=True,
    )

    _add_audit_sink(log_settings)

    logger.info(f"Logging initialized - Level: {log_settings.level}")


def _add_audit_sink(log_settings: LoggingSettings) -> None:
    audit_path = log_settings.audit_file_path
    audit_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        audit_path,
        format=AUDIT_FORMAT,
        level="INFO",
        filter=lambda record: "audit_type" in record["extra"],
        rotation=log_settings.audit_rotation,
        retention=log_settings.audit_retention,
        compression="zip",
        enqueue=True,
    )


def get_logger(name: str) -> Any:
    """Logger bound to ``name`` (usually the module's ``__name__``)."""
    return logger.bind(name=name)


def redact_sensitive(data: Any) -> Any:
    """Copy of ``data`` with credential-like keys masked, at any depth."""
    if isinstance(data, Mapping):
        return {
            key: REDACTED if _is_sensitive(key) else redact_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact_sensitive(item) for item in data]
    return data


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def audit_log(
    action: Union[AuditAction, str],
    details: dict[str, Any],
    audit_type: Union[AuditType, str] = AuditType.PIPELINE,
) -> None:
    """
    Write one entry to the audit log.

    ``job_id`` and ``candidate_id`` in ``details`` are lifted into the
    record's extras; the remaining details form the message.

    Args:
        action: What happened, e.g. ``AuditAction.PIPELINE_COMPLETED``
        details: Values describing the outcome
        audit_type: ``PIPELINE`` for job outcomes, ``DATA`` for parsed data writes
    """
    payload = redact_sensitive(details)
    job_id: Optional[str] = payload.pop("job_id", None)
    candidate_id: Optional[str] = payload.pop("candidate_id", None)

    logger.bind(
        audit_type=AuditType(audit_type).value,
        action=AuditAction(action).value,
        job_id=job_id or "-",
        candidate_id=candidate_id or "-",
    ).info(f"{payload}")


class LoggerMixin:
    """
    Gives a class a ``logger`` property bound to its class name.

    Usage:
        class Watchdog(LoggerMixin):
            def sweep(self):
                self.logger.info("Sweeping")
    """

    @property
    def logger(self) -> Any:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


# Auto-setup on import; a read-only log directory keeps loguru's default sink
try:
    setup_logging()
except OSError:
    pass
