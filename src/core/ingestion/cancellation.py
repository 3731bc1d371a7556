"""
Cooperative job cancellation.
"""

import threading

from src.core.errors import JobCancelledError


class CancellationRegistry:
    """
    Thread-safe set of cancelled job ids.

    Cancelling does not interrupt a running call; the pipeline checks the
    registry at stage boundaries and stops there.
    """

    def __init__(self) -> None:
        self._cancelled: set[str] = set()
        self._lock = threading.Lock()

    def cancel(self, job_id: str) -> None:
        with self._lock:
            self._cancelled.add(job_id)

    def is_cancelled(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._cancelled

    def job_ids(self) -> list[str]:
        """Snapshot of the cancelled job ids."""
        with self._lock:
            return list(self._cancelled)

    def discard(self, job_id: str) -> None:
        """Forget a job once it has finished."""
        with self._lock:
            self._cancelled.discard(job_id)

    def raise_if_cancelled(self, job_id: str, stage: str) -> None:
        """
        Raises:
            JobCancelledError: If ``job_id`` was cancelled
        """
        if self.is_cancelled(job_id):
            raise JobCancelledError(f"Job {job_id} was cancelled before {stage}", stage=stage)
