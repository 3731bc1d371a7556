"""
Error taxonomy and classification for resume ingestion.

Every error raised inside a pipeline stage carries an ``ErrorKind`` tag set
where it is raised. The classifier is a switch over that tag: only
transient upstream conditions are retryable, everything else (including
errors that carry no tag at all) is fatal.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag identifying what went wrong."""

    RATE_LIMITED = "rate_limited"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    STALLED = "stalled"
    UNKNOWN = "unknown"


class ErrorClass(str, Enum):
    """Whether the enclosing job should be retried."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class IngestionError(Exception):
    """Base class for all tagged ingestion errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class ValidationError(IngestionError):
    """The job is malformed or references an unsupported file type."""

    kind = ErrorKind.VALIDATION


class ConflictError(IngestionError):
    """Parsed resume data already exists for the candidate."""

    kind = ErrorKind.CONFLICT


class CandidateNotFoundError(IngestionError):
    """The job references a candidate that does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, candidate_id: str, **kwargs):
        super().__init__(f"Candidate not found: {candidate_id}", **kwargs)
        self.candidate_id = candidate_id


class ParsedDataNotFoundError(IngestionError):
    """The candidate has no parsed resume data."""

    kind = ErrorKind.NOT_FOUND


class SkillNotFoundError(IngestionError):
    """A skill lookup by name found nothing."""

    kind = ErrorKind.NOT_FOUND


class RateLimitedError(IngestionError):
    """The upstream parsing service asked us to back off."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Upstream rate limit exceeded", *, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class StageTimeoutError(IngestionError):
    """A blocking call exceeded its time bound."""

    kind = ErrorKind.TIMEOUT


class JobCancelledError(IngestionError):
    """The job was cancelled; detected at a stage boundary."""

    kind = ErrorKind.CANCELLED


class StalledJobError(IngestionError):
    """The job exceeded the maximum overall duration."""

    kind = ErrorKind.STALLED


# Transient upstream error under its taxonomy name
TransientUpstreamError = RateLimitedError

RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset({ErrorKind.RATE_LIMITED})


def error_kind(err: BaseException) -> ErrorKind:
    """Return the tag carried by an error; untagged errors are UNKNOWN."""
    if isinstance(err, IngestionError):
        return err.kind
    return ErrorKind.UNKNOWN


def classify_error(err: BaseException) -> ErrorClass:
    """Label an error as retryable or fatal."""
    if error_kind(err) in RETRYABLE_KINDS:
        return ErrorClass.RETRYABLE
    return ErrorClass.FATAL


def is_retryable(err: BaseException) -> bool:
    """Shorthand for ``classify_error(err) is ErrorClass.RETRYABLE``."""
    return classify_error(err) is ErrorClass.RETRYABLE
