"""
Tests for src.core.errors — error tags and the retry classifier.
"""

import pytest

from src.core.errors import (
    CandidateNotFoundError,
    ConflictError,
    ErrorClass,
    ErrorKind,
    IngestionError,
    JobCancelledError,
    ParsedDataNotFoundError,
    RateLimitedError,
    SkillNotFoundError,
    StageTimeoutError,
    StalledJobError,
    TransientUpstreamError,
    ValidationError,
    classify_error,
    error_kind,
    is_retryable,
)


class TestClassifyError:
    def test_rate_limited_is_retryable(self):
        assert classify_error(RateLimitedError()) is ErrorClass.RETRYABLE

    def test_transient_upstream_alias(self):
        assert TransientUpstreamError is RateLimitedError
        assert is_retryable(TransientUpstreamError("429 from parser"))

    @pytest.mark.parametrize(
        "err",
        [
            ValidationError("bad job"),
            ConflictError("exists"),
            CandidateNotFoundError("abc"),
            ParsedDataNotFoundError("none"),
            SkillNotFoundError("none"),
            StageTimeoutError("slow"),
            JobCancelledError("cancelled"),
            StalledJobError("stalled"),
            IngestionError("generic"),
        ],
    )
    def test_tagged_non_transient_errors_are_fatal(self, err):
        assert classify_error(err) is ErrorClass.FATAL

    @pytest.mark.parametrize(
        "err",
        [
            RuntimeError("rate limit exceeded"),
            TimeoutError("timed out"),
            ConnectionError("reset by peer"),
            ValueError("Rate Limit"),
        ],
    )
    def test_untagged_errors_fail_closed(self, err):
        assert classify_error(err) is ErrorClass.FATAL
        assert not is_retryable(err)


class TestErrorKind:
    def test_tag_read_from_error(self):
        assert error_kind(ConflictError("x")) is ErrorKind.CONFLICT
        assert error_kind(RateLimitedError()) is ErrorKind.RATE_LIMITED

    def test_untagged_is_unknown(self):
        assert error_kind(KeyError("x")) is ErrorKind.UNKNOWN


class TestIngestionError:
    def test_message_and_stage(self):
        err = ValidationError("Unsupported file type: text/plain", stage="validation")
        assert str(err) == "Unsupported file type: text/plain"
        assert err.message == "Unsupported file type: text/plain"
        assert err.stage == "validation"

    def test_candidate_not_found_message(self):
        err = CandidateNotFoundError("64b000000000000000000000", stage="storage")
        assert str(err) == "Candidate not found: 64b000000000000000000000"
        assert err.candidate_id == "64b000000000000000000000"
        assert err.stage == "storage"

    def test_rate_limited_retry_after(self):
        err = RateLimitedError(retry_after=2.5)
        assert err.retry_after == 2.5
        assert "rate limit" in str(err).lower()
