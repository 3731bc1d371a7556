"""
Resume processing stages.

Runs one job's stages in order: text extraction, AI structuring, then
storage of the normalized result. Progress is published on the event bus;
this module never talks to the status store directly.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, TypeVar

from src.core.errors import StageTimeoutError
from src.core.ingestion.cancellation import CancellationRegistry
from src.core.ingestion.events import PipelineEventBus, ProgressEvent
from src.core.ingestion.interfaces import DocumentParsingEngine
from src.core.ingestion.progress import ProgressPhase, phase_for_progress
from src.data.models.pipeline import ProcessingJob
from src.services.parsed_resume_service import IngestionOutcome, ParsedResumeDataService
from src.utils.config import get_settings
from src.utils.logger import LoggerMixin

T = TypeVar("T")


class ResumeProcessingService(LoggerMixin):
    """
    Executes the parsing and storage stages of a validated job.

    Every call to the parsing engine or to persistence is bounded by
    ``stage_timeout`` seconds. The bounded call runs on a helper thread so
    that the worker can stop waiting; the call itself is not interrupted.
    """

    def __init__(
        self,
        engine: DocumentParsingEngine,
        parsed_data_service: ParsedResumeDataService,
        event_bus: PipelineEventBus,
        cancellations: Optional[CancellationRegistry] = None,
        stage_timeout: Optional[float] = None,
        io_workers: Optional[int] = None,
    ):
        pipeline_settings = get_settings().pipeline
        self._engine = engine
        self._parsed_data = parsed_data_service
        self._events = event_bus
        self._cancellations = cancellations or CancellationRegistry()
        self._stage_timeout = stage_timeout or pipeline_settings.stage_timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=io_workers or pipeline_settings.worker_count * 2,
            thread_name_prefix="ingest-io",
        )

    @property
    def cancellations(self) -> CancellationRegistry:
        return self._cancellations

    def process(self, job: ProcessingJob) -> IngestionOutcome:
        """
        Run all stages for a job.

        Raises:
            IngestionError: Tagged failures from any stage
            Exception: Untagged collaborator failures, unchanged
        """
        self._report(job, 10, "Validation completed, starting resume parsing")

        self._checkpoint(job, ProgressPhase.TEXT_EXTRACTION)
        self._report(job, 20)
        text = self._bounded(
            ProgressPhase.TEXT_EXTRACTION,
            self._engine.extract_text,
            job.file_location,
            job.mime_type,
        )
        self.logger.debug(f"Job {job.job_id}: extracted {len(text)} characters")

        self._checkpoint(job, ProgressPhase.AI_STRUCTURING)
        self._report(job, 40)
        structured = self._bounded(ProgressPhase.AI_STRUCTURING, self._engine.structure_text, text)
        if not structured.raw_text:
            structured = structured.model_copy(update={"raw_text": text})

        # An engine result that arrives after cancellation is discarded here
        self._checkpoint(job, ProgressPhase.STORAGE_SAVING)
        self._report(job, 60)
        outcome = self._bounded(
            ProgressPhase.STORAGE_SAVING,
            self._parsed_data.ingest,
            job.candidate_id,
            structured,
        )

        self._report(job, 80)
        return outcome

    def shutdown(self, wait: bool = False) -> None:
        """Release the helper threads."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _report(self, job: ProcessingJob, percent: int, message: Optional[str] = None) -> None:
        message = message or phase_for_progress(percent).description
        self._events.publish(ProgressEvent(job_id=job.job_id, percent=percent, message=message))

    def _checkpoint(self, job: ProcessingJob, next_phase: ProgressPhase) -> None:
        self._cancellations.raise_if_cancelled(job.job_id, next_phase.value)

    def _bounded(self, phase: ProgressPhase, fn: Callable[..., T], *args) -> T:
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self._stage_timeout)
        except FutureTimeoutError:
            future.cancel()
            raise StageTimeoutError(
                f"{phase.description} timed out after {self._stage_timeout:g}s",
                stage=phase.stage.value,
            ) from None
