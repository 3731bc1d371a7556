"""
Candidate repository for resume ingestion.

Reads candidates and writes the fields the pipeline owns: back-filled
contact details and the derived total experience.
"""

from typing import Any, Optional

from bson import ObjectId

from src.data.database import CANDIDATES_COLLECTION
from src.data.models.candidate import BACKFILL_CONTACT_FIELDS, Candidate, CandidateAggregateUpdate
from src.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class CandidateRepository(BaseRepository[Candidate]):
    """Repository for candidate document operations."""

    @property
    def collection_name(self) -> str:
        return CANDIDATES_COLLECTION

    @property
    def model_class(self) -> type[Candidate]:
        return Candidate

    # -------------------------------------------------------------------------
    # Update Operations
    # -------------------------------------------------------------------------

    def set_aggregate(self, candidate_id: str | ObjectId, aggregate: CandidateAggregateUpdate) -> Optional[Candidate]:
        """Write derived values onto a candidate."""
        return self.update(candidate_id, aggregate.model_dump())

    def set_contact_fields(self, candidate_id: str | ObjectId, fields: dict[str, Any]) -> Optional[Candidate]:
        """
        Write contact fields onto a candidate.

        Only fields listed in ``BACKFILL_CONTACT_FIELDS`` are written.
        """
        allowed = {k: v for k, v in fields.items() if k in BACKFILL_CONTACT_FIELDS}
        if not allowed:
            return self.get_by_id(candidate_id)
        return self.update(candidate_id, allowed)


# Singleton instance
_candidate_repository: Optional[CandidateRepository] = None


def get_candidate_repository() -> CandidateRepository:
    """Get the candidate repository singleton instance."""
    global _candidate_repository
    if _candidate_repository is None:
        _candidate_repository = CandidateRepository()
    return _candidate_repository
