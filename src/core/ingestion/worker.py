"""
In-process job dispatch for resume ingestion.

``InMemoryJobQueue`` holds delivered jobs and schedules retries after a
backoff. ``WorkerPool`` runs a fixed number of worker threads that take
jobs off the queue and hand them to the coordinator. A job is retried only
when the coordinator re-raises its error; every other outcome is final.
"""

import queue
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from src.core.errors import is_retryable
from src.core.ingestion.coordinator import PipelineCoordinator
from src.data.models.pipeline import ProcessingJob, ProcessingResult
from src.utils.config import get_settings
from src.utils.logger import LoggerMixin


@dataclass(frozen=True)
class QueuedJob:
    """One delivery of a job."""

    job: ProcessingJob
    attempt: int = 1


class InMemoryJobQueue(LoggerMixin):
    """
    FIFO job queue with delayed redelivery.

    Retries back off exponentially: ``backoff * 2 ** (attempt - 1)``.

    ``join`` waits until every job put on the queue, including scheduled
    retries, has been marked done.
    """

    def __init__(self, backoff_seconds: Optional[float] = None):
        if backoff_seconds is None:
            backoff_seconds = get_settings().pipeline.retry_backoff_seconds
        self._backoff = backoff_seconds
        self._queue: "queue.Queue[QueuedJob]" = queue.Queue()
        self._timers: set[threading.Timer] = set()
        self._outstanding = 0
        self._cond = threading.Condition()
        self._closed = False

    def put(self, job: ProcessingJob, attempt: int = 1) -> None:
        with self._cond:
            self._outstanding += 1
        self._queue.put(QueuedJob(job=job, attempt=attempt))

    def extend(self, jobs: Iterable[ProcessingJob]) -> int:
        count = 0
        for job in jobs:
            self.put(job)
            count += 1
        return count

    def get(self, timeout: Optional[float] = None) -> Optional[QueuedJob]:
        """Take the next delivery, or None if none arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def task_done(self) -> None:
        with self._cond:
            self._outstanding -= 1
            if self._outstanding <= 0:
                self._cond.notify_all()

    def retry(self, queued: QueuedJob, delay: Optional[float] = None) -> None:
        """Redeliver a job with its attempt number raised, after a delay."""
        delay = self._backoff * 2 ** (queued.attempt - 1) if delay is None else delay

        with self._cond:
            if self._closed:
                self.logger.warning(f"Queue closed; dropping retry of job {queued.job.job_id}")
                return
            self._outstanding += 1

        timer: threading.Timer

        def redeliver() -> None:
            with self._cond:
                if timer not in self._timers:
                    return
                self._timers.discard(timer)
            self.put(queued.job, attempt=queued.attempt + 1)
            with self._cond:
                self._outstanding -= 1

        timer = threading.Timer(delay, redeliver)
        timer.daemon = True
        with self._cond:
            self._timers.add(timer)
        timer.start()
        self.logger.info(
            f"Job {queued.job.job_id} scheduled for attempt {queued.attempt + 1} in {delay:g}s"
        )

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Block until all work is done.

        Returns:
            False if ``timeout`` elapsed first
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding <= 0, timeout=timeout)

    def close(self) -> None:
        """Cancel pending retries."""
        with self._cond:
            self._closed = True
            timers = list(self._timers)
            self._timers.clear()
            self._outstanding -= len(timers)
            self._cond.notify_all()
        for timer in timers:
            timer.cancel()

    def __len__(self) -> int:
        return self._queue.qsize()


class WorkerPool(LoggerMixin):
    """Fixed-size pool of worker threads feeding jobs to the coordinator."""

    def __init__(
        self,
        coordinator: PipelineCoordinator,
        job_queue: InMemoryJobQueue,
        worker_count: Optional[int] = None,
        poll_seconds: Optional[float] = None,
    ):
        pipeline_settings = get_settings().pipeline
        self._coordinator = coordinator
        self._queue = job_queue
        self._worker_count = worker_count or pipeline_settings.worker_count
        self._poll = poll_seconds or pipeline_settings.queue_poll_seconds

        self._threads: list[threading.Thread] = []
        self._stop = threading.Event()
        self._results: list[ProcessingResult] = []
        self._results_lock = threading.Lock()

    @property
    def results(self) -> list[ProcessingResult]:
        """Terminal results collected so far."""
        with self._results_lock:
            return list(self._results)

    def start(self) -> None:
        if self._threads:
            self.logger.warning("Worker pool already running")
            return

        self._stop.clear()
        for index in range(self._worker_count):
            thread = threading.Thread(target=self._run, name=f"ingest-worker-{index}", daemon=True)
            thread.start()
            self._threads.append(thread)
        self.logger.info(f"Started {self._worker_count} ingestion workers")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        self.logger.info("Ingestion workers stopped")

    def run_until_idle(self, timeout: Optional[float] = None) -> list[ProcessingResult]:
        """Start the pool, wait for the queue to drain, then stop."""
        self.start()
        try:
            if not self._queue.join(timeout=timeout):
                self.logger.warning("Timed out waiting for ingestion queue to drain")
        finally:
            self.stop()
        return self.results

    def _run(self) -> None:
        while not self._stop.is_set():
            queued = self._queue.get(timeout=self._poll)
            if queued is None:
                continue
            try:
                self.handle(queued)
            finally:
                self._queue.task_done()

    def handle(self, queued: QueuedJob) -> Optional[ProcessingResult]:
        """
        Deliver one job to the coordinator.

        Returns:
            The terminal result, or None if the job was requeued or errored
        """
        job_id = queued.job.job_id
        try:
            result = self._coordinator.process(queued.job, attempt=queued.attempt)
        except Exception as err:
            if is_retryable(err) and queued.attempt < self._coordinator.max_attempts:
                self._queue.retry(queued, delay=getattr(err, "retry_after", None))
            else:
                self.logger.exception(f"Unhandled error processing job {job_id}: {err}")
            return None

        with self._results_lock:
            self._results.append(result)
        return result
