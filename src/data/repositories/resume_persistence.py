"""
MongoDB implementation of the pipeline's persistence interface.
"""

from typing import Any, Optional

from src.core.errors import CandidateNotFoundError, ParsedDataNotFoundError
from src.core.ingestion.interfaces import ResumePersistence
from src.data.models.candidate import Candidate, CandidateAggregateUpdate
from src.data.models.resume import ParsedResumeData
from src.utils.logger import get_logger

from .candidate_repository import CandidateRepository, get_candidate_repository
from .parsed_resume_repository import ParsedResumeRepository, get_parsed_resume_repository

logger = get_logger(__name__)


class MongoResumePersistence(ResumePersistence):
    """Candidates and parsed resume data stored in MongoDB."""

    def __init__(
        self,
        candidates: Optional[CandidateRepository] = None,
        parsed_resumes: Optional[ParsedResumeRepository] = None,
    ):
        self._candidates = candidates or get_candidate_repository()
        self._parsed = parsed_resumes or get_parsed_resume_repository()

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return self._candidates.get_by_id(candidate_id)

    def get_parsed_resume_data(self, candidate_id: str) -> Optional[ParsedResumeData]:
        return self._parsed.get_by_candidate(candidate_id)

    def create_parsed_resume_data(self, candidate_id: str, data: ParsedResumeData) -> ParsedResumeData:
        return self._parsed.create(data)

    def update_parsed_resume_data(self, candidate_id: str, fields: dict[str, Any]) -> ParsedResumeData:
        updated = self._parsed.update_by_candidate(candidate_id, fields)
        if updated is None:
            raise ParsedDataNotFoundError(f"No parsed resume data for candidate {candidate_id}")
        return updated

    def delete_parsed_resume_data(self, candidate_id: str) -> bool:
        return self._parsed.delete_by_candidate(candidate_id)

    def update_candidate_aggregate(self, candidate_id: str, aggregate: dict[str, Any]) -> None:
        updated = self._candidates.set_aggregate(candidate_id, CandidateAggregateUpdate(**aggregate))
        if updated is None:
            raise CandidateNotFoundError(candidate_id, stage="storage")

    def update_candidate_profile(self, candidate_id: str, fields: dict[str, Any]) -> None:
        if self._candidates.set_contact_fields(candidate_id, fields) is None:
            logger.warning(f"Candidate {candidate_id} disappeared before contact back-fill")
