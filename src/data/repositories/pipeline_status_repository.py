"""
MongoDB-backed pipeline status store.

Lets several worker processes share pipeline statuses. Each document
carries a ``version`` counter; writes are compare-and-set on that counter
and never match a document whose stage is terminal.
"""

from datetime import datetime
from typing import Any, Optional

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from src.core.errors import ConflictError
from src.core.ingestion.status_store import PipelineStatusStore, StatusMutator
from src.data.database import PIPELINE_STATUSES_COLLECTION, get_database_manager
from src.data.models.base import to_bson_compatible
from src.data.models.pipeline import TERMINAL_STAGES, PipelineStatus
from src.utils.logger import get_logger

logger = get_logger(__name__)

_TERMINAL_VALUES = [stage.value for stage in TERMINAL_STAGES]


class MongoPipelineStatusStore(PipelineStatusStore):
    """Pipeline statuses stored one document per job id."""

    def __init__(self, collection: Optional[Collection] = None, max_write_attempts: int = 5):
        self._collection = collection
        self._max_write_attempts = max_write_attempts

    def _get_collection(self) -> Collection:
        if self._collection is None:
            self._collection = get_database_manager().get_collection(PIPELINE_STATUSES_COLLECTION)
        return self._collection

    @staticmethod
    def _to_status(document: Optional[dict[str, Any]]) -> Optional[PipelineStatus]:
        if document is None:
            return None
        return PipelineStatus.model_validate(document)

    @staticmethod
    def _to_document(status: PipelineStatus, version: int) -> dict[str, Any]:
        document = to_bson_compatible(status.model_dump(mode="python"))
        document["version"] = version
        return document

    def get(self, job_id: str) -> Optional[PipelineStatus]:
        return self._to_status(self._get_collection().find_one({"job_id": job_id}))

    def update(self, job_id: str, mutator: StatusMutator) -> Optional[PipelineStatus]:
        collection = self._get_collection()

        for _ in range(self._max_write_attempts):
            document = collection.find_one({"job_id": job_id})
            current = self._to_status(document)
            if current is not None and current.is_terminal:
                logger.debug(f"Ignoring write to terminal pipeline status {job_id}")
                return None

            replacement = mutator(current)
            if replacement is None:
                return None

            if document is None:
                try:
                    collection.insert_one(self._to_document(replacement, version=1))
                    return replacement
                except DuplicateKeyError:
                    continue

            version = document.get("version", 0)
            result = collection.replace_one(
                {
                    "job_id": job_id,
                    "version": version,
                    "stage": {"$nin": _TERMINAL_VALUES},
                },
                self._to_document(replacement, version=version + 1),
            )
            if result.matched_count:
                return replacement

        raise ConflictError(f"Too many concurrent writes to pipeline status {job_id}")

    def list_statuses(self) -> list[PipelineStatus]:
        return [self._to_status(doc) for doc in self._get_collection().find({})]

    def list_active(self) -> list[PipelineStatus]:
        cursor = self._get_collection().find({"stage": {"$nin": _TERMINAL_VALUES}})
        return [self._to_status(doc) for doc in cursor]

    def delete(self, job_id: str) -> bool:
        return self._get_collection().delete_one({"job_id": job_id}).deleted_count > 0

    def cleanup(self, older_than: datetime) -> int:
        result = self._get_collection().delete_many(
            {"stage": {"$in": _TERMINAL_VALUES}, "completed_at": {"$lt": older_than}}
        )
        if result.deleted_count:
            logger.debug(f"Cleaned up {result.deleted_count} expired pipeline statuses")
        return result.deleted_count
