"""
Background sweeper for the pipeline status store.

Force-fails jobs that have been running longer than the maximum job
duration and drops terminal statuses past their retention period.
Cancellations of finished jobs are forgotten on the same pass.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional

from src.core.errors import StalledJobError
from src.core.ingestion.coordinator import PipelineCoordinator
from src.utils.config import get_settings
from src.utils.logger import LoggerMixin


class PipelineWatchdog(LoggerMixin):
    """Periodically sweeps stalled and expired pipeline statuses."""

    def __init__(
        self,
        coordinator: PipelineCoordinator,
        max_job_duration: Optional[float] = None,
        interval: Optional[float] = None,
        retention_hours: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        pipeline_settings = get_settings().pipeline
        self._coordinator = coordinator
        self._store = coordinator.status_store
        self._max_duration = timedelta(
            seconds=max_job_duration or pipeline_settings.max_job_duration_seconds
        )
        self._interval = interval or pipeline_settings.watchdog_interval_seconds
        self._retention = timedelta(hours=retention_hours or pipeline_settings.status_retention_hours)
        self._clock = clock

        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def sweep(self) -> tuple[int, int]:
        """
        Run one pass over the store.

        Returns:
            (number of jobs force-failed, number of statuses removed)
        """
        now = self._clock()
        deadline = now - self._max_duration

        stalled = 0
        for status in self._store.list_active():
            if status.started_at >= deadline:
                continue
            running_for = int((now - status.started_at).total_seconds())
            err = StalledJobError(
                f"Job {status.job_id} stalled after {running_for}s in {status.stage.value}",
                stage=status.stage.value,
            )
            if self._coordinator.force_fail(status.job_id, err) is not None:
                stalled += 1

        cutoff = now - self._retention
        # before cleanup, while the expiring statuses are still readable
        self._coordinator.prune_cancellations(cutoff)
        removed = self._store.cleanup(cutoff)

        if stalled or removed:
            self.logger.info(f"Watchdog sweep: {stalled} stalled jobs failed, {removed} statuses removed")
        return stalled, removed

    def start(self) -> None:
        """Start sweeping in a background thread."""
        if self._thread and self._thread.is_alive():
            self.logger.warning("Pipeline watchdog already running")
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="pipeline-watchdog", daemon=True)
        self._thread.start()
        self.logger.info(f"Pipeline watchdog started (interval {self._interval:g}s)")

    def stop(self) -> None:
        """Stop the background thread."""
        if self._thread and self._thread.is_alive():
            self._stop.set()
            self._thread.join(timeout=5)
        self.logger.info("Pipeline watchdog stopped")

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.sweep()
            except Exception as e:
                self.logger.error(f"Watchdog sweep failed: {e}")
