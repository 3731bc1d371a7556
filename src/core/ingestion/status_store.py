"""
Pipeline status storage.

Maps job ids to their current ``PipelineStatus``. Writes to one job are
serialized; writes to different jobs proceed independently. A status whose
stage is terminal is never replaced; attempts to do so are silently ignored,
which is what makes completing or failing a job idempotent.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from src.data.models.pipeline import PipelineStage, PipelineStatistics, PipelineStatus
from src.utils.logger import get_logger

logger = get_logger(__name__)

StatusMutator = Callable[[Optional[PipelineStatus]], Optional[PipelineStatus]]


class PipelineStatusStore(ABC):
    """Abstract keyed store of pipeline statuses."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[PipelineStatus]:
        """Get the current status of a job."""

    @abstractmethod
    def update(self, job_id: str, mutator: StatusMutator) -> Optional[PipelineStatus]:
        """
        Atomically read-modify-write one job's status.

        ``mutator`` receives the current status (or None) and returns the
        replacement, or None to leave it unchanged. It is not called when
        the stored status is terminal.

        Returns:
            The stored replacement, or None if nothing was written
        """

    @abstractmethod
    def list_statuses(self) -> list[PipelineStatus]:
        """Snapshot of all stored statuses."""

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """Remove a job's status."""

    def upsert(self, job_id: str, status: PipelineStatus) -> bool:
        """
        Insert or replace a job's status.

        Returns:
            False if the stored status was terminal and the write was ignored
        """
        return self.update(job_id, lambda _current: status) is not None

    def list_active(self) -> list[PipelineStatus]:
        """Statuses that have not reached a terminal stage."""
        return [s for s in self.list_statuses() if not s.is_terminal]

    def statistics(self) -> PipelineStatistics:
        """Count statuses by state."""
        stats = PipelineStatistics()
        for status in self.list_statuses():
            stats.total += 1
            if status.stage == PipelineStage.COMPLETED:
                stats.completed += 1
            elif status.stage == PipelineStage.FAILED:
                stats.failed += 1
            elif status.retrying:
                stats.retrying += 1
            else:
                stats.active += 1
        return stats

    def cleanup(self, older_than: datetime) -> int:
        """
        Drop terminal statuses that finished before ``older_than``.

        Returns:
            Number of statuses removed
        """
        removed = 0
        for status in self.list_statuses():
            if status.is_terminal and status.completed_at and status.completed_at < older_than:
                if self.delete(status.job_id):
                    removed += 1
        if removed:
            logger.debug(f"Cleaned up {removed} expired pipeline statuses")
        return removed


class InMemoryPipelineStatusStore(PipelineStatusStore):
    """
    Process-local status store guarded by one lock per job id.

    The shared guard lock is only held for dictionary bookkeeping, never
    while a mutator runs.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, PipelineStatus] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, job_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(job_id)
            if lock is None:
                lock = self._locks[job_id] = threading.Lock()
            return lock

    def get(self, job_id: str) -> Optional[PipelineStatus]:
        return self._statuses.get(job_id)

    def update(self, job_id: str, mutator: StatusMutator) -> Optional[PipelineStatus]:
        with self._lock_for(job_id):
            current = self._statuses.get(job_id)
            if current is not None and current.is_terminal:
                logger.debug(f"Ignoring write to terminal pipeline status {job_id}")
                return None

            replacement = mutator(current)
            if replacement is None:
                return None

            with self._guard:
                self._statuses[job_id] = replacement
            return replacement

    def list_statuses(self) -> list[PipelineStatus]:
        with self._guard:
            return list(self._statuses.values())

    def delete(self, job_id: str) -> bool:
        with self._guard:
            self._locks.pop(job_id, None)
            return self._statuses.pop(job_id, None) is not None

    def __len__(self) -> int:
        return len(self._statuses)
