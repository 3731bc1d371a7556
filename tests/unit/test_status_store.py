"""
Tests for src.core.ingestion.status_store — the in-memory pipeline status store.
"""

import threading
import time
from datetime import datetime, timedelta

from src.core.ingestion.status_store import InMemoryPipelineStatusStore
from src.data.models import PipelineStage, PipelineStatus

T0 = datetime(2024, 6, 1, 12, 0, 0)


def _status(job_id: str = "job-1", **kwargs) -> PipelineStatus:
    kwargs.setdefault("started_at", T0)
    return PipelineStatus(job_id=job_id, candidate_id="cand-1", **kwargs)


class TestUpsertAndGet:
    def test_get_missing(self):
        assert InMemoryPipelineStatusStore().get("nope") is None

    def test_upsert_then_get(self):
        store = InMemoryPipelineStatusStore()
        assert store.upsert("job-1", _status(progress=5)) is True
        assert store.get("job-1").progress == 5

    def test_upsert_replaces_non_terminal(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(progress=5))
        store.upsert("job-1", _status(progress=20, stage=PipelineStage.PARSING))
        assert store.get("job-1").stage is PipelineStage.PARSING

    def test_upsert_onto_terminal_is_noop(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(progress=100, stage=PipelineStage.COMPLETED))
        assert store.upsert("job-1", _status(progress=40, stage=PipelineStage.PARSING)) is False
        assert store.get("job-1").stage is PipelineStage.COMPLETED
        assert store.get("job-1").progress == 100

    def test_failed_is_terminal_too(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(stage=PipelineStage.FAILED, last_error="boom"))
        assert store.upsert("job-1", _status(stage=PipelineStage.COMPLETED, progress=100)) is False
        assert store.get("job-1").last_error == "boom"


class TestUpdate:
    def test_mutator_sees_current(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(progress=5))
        updated = store.update("job-1", lambda s: s.model_copy(update={"progress": s.progress + 5}))
        assert updated.progress == 10

    def test_mutator_returning_none_writes_nothing(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(progress=5))
        assert store.update("job-1", lambda s: None) is None
        assert store.get("job-1").progress == 5

    def test_mutator_not_called_for_terminal(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(stage=PipelineStage.COMPLETED, progress=100))
        calls = []
        store.update("job-1", lambda s: calls.append(s))
        assert calls == []

    def test_concurrent_writes_to_one_key_are_serialized(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("job-1", _status(progress=0))

        def bump(status):
            value = status.progress
            time.sleep(0.001)
            return status.model_copy(update={"progress": value + 1})

        threads = [
            threading.Thread(target=lambda: [store.update("job-1", bump) for _ in range(10)])
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("job-1").progress == 50

    def test_unrelated_keys_do_not_block(self):
        store = InMemoryPipelineStatusStore()
        store.upsert("slow", _status("slow"))
        entered = threading.Event()
        release = threading.Event()

        def slow_mutator(status):
            entered.set()
            release.wait(timeout=5)
            return status

        worker = threading.Thread(target=store.update, args=("slow", slow_mutator))
        worker.start()
        assert entered.wait(timeout=5)

        started = time.monotonic()
        assert store.upsert("fast", _status("fast"))
        assert store.get("fast") is not None
        assert time.monotonic() - started < 1.0

        release.set()
        worker.join()


class TestQueries:
    def _populated(self) -> InMemoryPipelineStatusStore:
        store = InMemoryPipelineStatusStore()
        store.upsert("a", _status("a", progress=20, stage=PipelineStage.PARSING))
        store.upsert("b", _status("b", retrying=True))
        store.upsert("c", _status("c", stage=PipelineStage.COMPLETED, progress=100, completed_at=T0))
        store.upsert(
            "d",
            _status("d", stage=PipelineStage.FAILED, completed_at=T0 + timedelta(hours=30)),
        )
        return store

    def test_list_active(self):
        assert sorted(s.job_id for s in self._populated().list_active()) == ["a", "b"]

    def test_statistics(self):
        stats = self._populated().statistics()
        assert (stats.total, stats.active, stats.retrying, stats.completed, stats.failed) == (4, 1, 1, 1, 1)

    def test_cleanup_drops_only_old_terminal(self):
        store = self._populated()
        removed = store.cleanup(older_than=T0 + timedelta(hours=24))
        assert removed == 1
        assert store.get("c") is None
        assert store.get("d") is not None
        assert store.get("a") is not None

    def test_delete(self):
        store = self._populated()
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert len(store) == 3
