"""
Pipeline coordinator for resume ingestion.

Owns every write to the pipeline status of a job: start, progress,
completion and failure. Each stage error reaches the coordinator exactly
once and leaves it in one of two ways: re-raised unchanged so the
dispatcher retries the whole job (status stays non-terminal), or converted
into a terminal ``failed`` status plus a ``ProcessingResult`` that is
returned, never raised.
"""

import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Optional

from src.core.errors import (
    ErrorClass,
    IngestionError,
    StalledJobError,
    ValidationError,
    classify_error,
)
from src.core.ingestion.events import PipelineEventBus, ProgressEvent
from src.core.ingestion.processor import ResumeProcessingService
from src.core.ingestion.progress import ProgressPhase, phase_for_progress
from src.core.ingestion.status_store import PipelineStatusStore
from src.data.models.pipeline import (
    PipelineStage,
    PipelineStatus,
    ProcessingJob,
    ProcessingResult,
)
from src.utils.config import get_settings
from src.utils.constants import AuditAction
from src.utils.logger import LoggerMixin, audit_log

INITIAL_PROGRESS = 5


def _error_message(err: BaseException) -> str:
    return str(err) or err.__class__.__name__


class PipelineCoordinator(LoggerMixin):
    """
    Orchestrates stage transitions and finalization of ingestion jobs.

    Progress reported by the stage runner arrives through the event bus.
    Terminal statuses are write-once, so ``complete`` and ``fail`` are
    idempotent per job id.
    """

    def __init__(
        self,
        status_store: PipelineStatusStore,
        processor: ResumeProcessingService,
        event_bus: PipelineEventBus,
        max_attempts: Optional[int] = None,
        allowed_mime_types: Optional[Iterable[str]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        pipeline_settings = get_settings().pipeline
        self._store = status_store
        self._processor = processor
        self._max_attempts = max_attempts or pipeline_settings.max_attempts
        self._allowed_mime_types = frozenset(
            m.lower() for m in (allowed_mime_types or pipeline_settings.allowed_mime_types)
        )
        self._clock = clock
        self._unsubscribe = event_bus.subscribe(ProgressEvent, self._on_progress)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def status_store(self) -> PipelineStatusStore:
        return self._store

    # -------------------------------------------------------------------------
    # Full run
    # -------------------------------------------------------------------------

    def process(self, job: ProcessingJob, attempt: int = 1) -> ProcessingResult:
        """
        Run one delivery of a job end to end.

        Returns:
            The terminal outcome of the job

        Raises:
            Exception: The original stage error, when the job should be retried
        """
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            self.start(job, attempt)
            status = self._store.get(job.job_id)
            if status is not None and status.is_terminal:
                return self._result_from_status(status, elapsed_ms())

            try:
                outcome = self._processor.process(job)
            except Exception as err:
                return self.fail(job.job_id, err, attempt, duration_ms=elapsed_ms())

            return self.complete(
                job.job_id,
                ProcessingResult(
                    candidate_id=job.candidate_id,
                    job_id=job.job_id,
                    success=True,
                    processing_time=elapsed_ms(),
                    total_experience=outcome.total_experience,
                    skill_count=len(outcome.parsed_data.skills),
                ),
                elapsed_ms(),
            )
        finally:
            # A retrying job keeps its cancellation for the next delivery
            settled = self._store.get(job.job_id)
            if settled is None or settled.is_terminal:
                self._processor.cancellations.discard(job.job_id)

    # -------------------------------------------------------------------------
    # Stage transitions
    # -------------------------------------------------------------------------

    def start(self, job: ProcessingJob, attempt: int = 1) -> str:
        """
        Validate a job and record its initial status.

        An invalid job is finalized as failed immediately, without any
        collaborator being contacted. A redelivered job keeps its progress
        and only has its attempt count raised.

        Returns:
            The job id
        """
        now = self._clock()

        try:
            self._validate(job)
        except ValidationError as err:
            self.logger.warning(f"Rejecting job {job.job_id}: {err}")
            if self._finalize_failure(job.job_id, err, attempt, candidate_id=job.candidate_id) is not None:
                self._audit_failure(job.job_id, job.candidate_id, err, attempt)
            return job.job_id

        def begin(current: Optional[PipelineStatus]) -> PipelineStatus:
            if current is None:
                status = PipelineStatus(
                    job_id=job.job_id,
                    candidate_id=job.candidate_id,
                    progress=INITIAL_PROGRESS,
                    stage=PipelineStage.VALIDATION,
                    phase=ProgressPhase.VALIDATION.value,
                    message="Starting resume processing validation",
                    attempts=attempt,
                    started_at=now,
                    updated_at=now,
                )
                return status.model_copy(update={"notifications": status.notify(status.message, at=now)})

            message = f"Retrying pipeline (attempt {attempt}/{self._max_attempts})"
            return current.model_copy(
                update={
                    "attempts": max(current.attempts, attempt),
                    "progress": max(current.progress, INITIAL_PROGRESS),
                    "message": message,
                    "updated_at": now,
                    "notifications": current.notify(message, at=now, stage="retry"),
                }
            )

        if self._store.update(job.job_id, begin) is not None:
            self.logger.info(f"Pipeline started for job {job.job_id}, candidate {job.candidate_id} (attempt {attempt})")
        return job.job_id

    def report_progress(self, job_id: str, percent: int, message: Optional[str] = None) -> Optional[PipelineStatus]:
        """
        Record a progress percentage for a running job.

        Reports for unknown jobs, reports below the stored progress and
        reports after a terminal stage are ignored.

        Returns:
            The new status, or None if nothing was written

        Raises:
            ValueError: If ``percent`` is not an integer within 0..100
        """
        phase = phase_for_progress(percent)
        now = self._clock()

        def advance(current: Optional[PipelineStatus]) -> Optional[PipelineStatus]:
            if current is None or percent < current.progress:
                return None
            text = message or phase.description
            changes = {
                "progress": percent,
                "stage": phase.stage,
                "phase": phase.value,
                "message": text,
                "retrying": False,
                "updated_at": now,
                "notifications": current.notify(text, at=now, stage=phase.stage.value),
            }
            if phase.stage.is_terminal:
                changes["completed_at"] = now
            return current.model_copy(update=changes)

        status = self._store.update(job_id, advance)
        if status is not None:
            self.logger.debug(f"Job {job_id} progress: {percent}% ({phase.value})")
        return status

    def complete(self, job_id: str, result: ProcessingResult, duration_ms: int) -> ProcessingResult:
        """
        Mark a job completed with progress 100.

        Only the first call for a job has any effect. Later calls return
        the outcome that is already stored.
        """
        now = self._clock()
        message = f"Resume processing completed successfully in {duration_ms}ms"

        def finish(current: Optional[PipelineStatus]) -> PipelineStatus:
            base = current or PipelineStatus(
                job_id=job_id, candidate_id=result.candidate_id, started_at=now
            )
            return base.model_copy(
                update={
                    "progress": 100,
                    "stage": PipelineStage.COMPLETED,
                    "phase": ProgressPhase.COMPLETED.value,
                    "message": message,
                    "retrying": False,
                    "completed_at": now,
                    "updated_at": now,
                    "notifications": base.notify(message, type="success", at=now, stage="completed"),
                }
            )

        if self._store.update(job_id, finish) is None:
            self.logger.debug(f"Job {job_id} already finalized; ignoring completion")
            stored = self._store.get(job_id)
            return self._result_from_status(stored, duration_ms) if stored else result

        self.logger.info(f"Resume processing completed for job {job_id} in {duration_ms}ms")
        audit_log(
            AuditAction.PIPELINE_COMPLETED,
            {
                "job_id": job_id,
                "candidate_id": result.candidate_id,
                "processing_time_ms": duration_ms,
                "total_experience": result.total_experience,
                "skill_count": result.skill_count,
            },
        )
        return result.model_copy(update={"job_id": job_id, "processing_time": duration_ms})

    def fail(
        self,
        job_id: str,
        err: BaseException,
        attempt: int,
        duration_ms: Optional[int] = None,
    ) -> ProcessingResult:
        """
        Handle a stage error.

        Retryable errors with attempts left are re-raised unchanged and the
        status is marked as retrying. Anything else finalizes the job as
        failed and is reported through the returned result.

        Raises:
            Exception: ``err`` itself, when the dispatcher should retry
        """
        current = self._store.get(job_id)
        if current is not None and current.is_terminal:
            self.logger.debug(f"Job {job_id} already finalized; not failing again")
            return self._result_from_status(current, duration_ms)

        classification = classify_error(err)
        candidate_id = current.candidate_id if current else None

        if classification is ErrorClass.RETRYABLE and attempt < self._max_attempts:
            self._mark_retrying(job_id, err, attempt)
            self.logger.warning(
                f"Job {job_id} attempt {attempt}/{self._max_attempts} failed with retryable error: {err}"
            )
            raise err

        self.logger.error(
            f"Resume processing failed for job {job_id} "
            f"({classification.value}, attempt {attempt}/{self._max_attempts}): {err}"
        )
        status = self._finalize_failure(job_id, err, attempt, candidate_id=candidate_id)
        if status is None:
            stored = self._store.get(job_id)
            return self._result_from_status(stored, duration_ms)

        self._audit_failure(job_id, status.candidate_id, err, attempt)
        return ProcessingResult(
            candidate_id=status.candidate_id,
            job_id=job_id,
            success=False,
            error=_error_message(err),
            processing_time=duration_ms if duration_ms is not None else self._elapsed_ms(status),
        )

    def force_fail(self, job_id: str, err: Optional[IngestionError] = None) -> Optional[ProcessingResult]:
        """
        Fail a job from outside its worker, e.g. when it has stalled.

        The job is also cancelled so its worker stops at the next stage
        boundary.

        Returns:
            The failure result, or None if the job was already terminal
        """
        current = self._store.get(job_id)
        if current is not None and current.is_terminal:
            return None

        err = err or StalledJobError(f"Job {job_id} exceeded the maximum processing duration")
        self._processor.cancellations.cancel(job_id)
        attempt = current.attempts if current else 1
        status = self._finalize_failure(job_id, err, attempt)
        if status is None:
            return None

        self.logger.error(f"Force-failed job {job_id}: {err}")
        audit_log(
            AuditAction.PIPELINE_FORCE_FAILED,
            {"job_id": job_id, "candidate_id": status.candidate_id, "error": _error_message(err)},
        )
        return self._result_from_status(status)

    def cancel(self, job_id: str) -> None:
        """
        Request cooperative cancellation of a job.

        Jobs not seen yet can be cancelled ahead of delivery. Jobs that
        already finished are left alone.
        """
        current = self._store.get(job_id)
        if current is not None and current.is_terminal:
            self.logger.debug(f"Job {job_id} already finalized; ignoring cancellation")
            return
        self._processor.cancellations.cancel(job_id)
        self.logger.info(f"Cancellation requested for job {job_id}")

    def prune_cancellations(self, finished_before: datetime) -> int:
        """
        Forget cancellations of jobs that finished before ``finished_before``.

        Jobs that finished more recently keep theirs, so a worker still
        running a force-failed job stops at its next stage boundary.

        Returns:
            Number of cancellations dropped
        """
        registry = self._processor.cancellations
        pruned = 0
        for job_id in registry.job_ids():
            status = self._store.get(job_id)
            if status is None or not status.is_terminal:
                continue
            if status.completed_at and status.completed_at < finished_before:
                registry.discard(job_id)
                pruned += 1
        if pruned:
            self.logger.debug(f"Pruned {pruned} cancellations of finished jobs")
        return pruned

    def get_status(self, job_id: str) -> Optional[PipelineStatus]:
        return self._store.get(job_id)

    def close(self) -> None:
        """Stop receiving progress events."""
        self._unsubscribe()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _on_progress(self, event: ProgressEvent) -> None:
        self.report_progress(event.job_id, event.percent, event.message)

    def _validate(self, job: ProcessingJob) -> None:
        if not job.candidate_id or not job.candidate_id.strip():
            raise ValidationError("Job is missing candidateId", stage=PipelineStage.VALIDATION.value)
        if (job.mime_type or "").strip().lower() not in self._allowed_mime_types:
            raise ValidationError(f"Unsupported file type: {job.mime_type}", stage=PipelineStage.VALIDATION.value)
        if not job.file_location:
            raise ValidationError("Job is missing a file location", stage=PipelineStage.VALIDATION.value)

    def _mark_retrying(self, job_id: str, err: BaseException, attempt: int) -> None:
        now = self._clock()
        message = f"Will retry processing (attempt {attempt + 1}/{self._max_attempts})"

        def retrying(current: Optional[PipelineStatus]) -> PipelineStatus:
            base = current or PipelineStatus(job_id=job_id, started_at=now)
            stage = getattr(err, "stage", None) or PipelineStage(base.stage).value
            notifications = base.notify(f"Error in {stage}: {_error_message(err)}", type="error", at=now, stage=stage)
            notifications.append(
                notifications[-1].model_copy(update={"type": "warning", "message": message})
            )
            return base.model_copy(
                update={
                    "attempts": max(base.attempts, attempt),
                    "retrying": True,
                    "last_error": _error_message(err),
                    "message": message,
                    "updated_at": now,
                    "notifications": notifications,
                }
            )

        self._store.update(job_id, retrying)

    def _finalize_failure(
        self,
        job_id: str,
        err: BaseException,
        attempt: int,
        candidate_id: Optional[str] = None,
    ) -> Optional[PipelineStatus]:
        now = self._clock()
        error_text = _error_message(err)

        def finalize(current: Optional[PipelineStatus]) -> PipelineStatus:
            base = current or PipelineStatus(
                job_id=job_id,
                candidate_id=candidate_id,
                progress=0,
                attempts=attempt,
                started_at=now,
            )
            stage = getattr(err, "stage", None) or PipelineStage(base.stage).value
            return base.model_copy(
                update={
                    "stage": PipelineStage.FAILED,
                    "message": f"Resume processing failed: {error_text}",
                    "attempts": max(base.attempts, attempt),
                    "retrying": False,
                    "last_error": error_text,
                    "completed_at": now,
                    "updated_at": now,
                    "notifications": base.notify(
                        f"Error in {stage}: {error_text}", type="error", at=now, stage=stage
                    ),
                }
            )

        return self._store.update(job_id, finalize)

    def _audit_failure(self, job_id: str, candidate_id: Optional[str], err: BaseException, attempt: int) -> None:
        audit_log(
            AuditAction.PIPELINE_FAILED,
            {
                "job_id": job_id,
                "candidate_id": candidate_id,
                "error": _error_message(err),
                "error_class": classify_error(err).value,
                "attempt": attempt,
            },
        )

    def _elapsed_ms(self, status: PipelineStatus) -> int:
        end = status.completed_at or self._clock()
        return max(0, int((end - status.started_at).total_seconds() * 1000))

    def _result_from_status(self, status: PipelineStatus, duration_ms: Optional[int] = None) -> ProcessingResult:
        succeeded = status.stage == PipelineStage.COMPLETED
        return ProcessingResult(
            candidate_id=status.candidate_id,
            job_id=status.job_id,
            success=succeeded,
            error=None if succeeded else (status.last_error or "Unknown error occurred during processing"),
            processing_time=duration_ms if duration_ms is not None else self._elapsed_ms(status),
        )
