"""
Parsed resume data repository.

Stores one ``ParsedResumeData`` document per candidate. Uniqueness is
enforced by a unique index on ``candidate_id``.
"""

import re
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError

from src.core.errors import ConflictError
from src.data.database import PARSED_RESUME_DATA_COLLECTION
from src.data.models.resume import ParsedResumeData
from src.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class ParsedResumeRepository(BaseRepository[ParsedResumeData]):
    """Repository for parsed resume data documents."""

    @property
    def collection_name(self) -> str:
        return PARSED_RESUME_DATA_COLLECTION

    @property
    def model_class(self) -> type[ParsedResumeData]:
        return ParsedResumeData

    def create(self, model: ParsedResumeData) -> ParsedResumeData:
        """
        Insert parsed data for a candidate.

        Raises:
            ConflictError: If the candidate already has parsed data
        """
        try:
            return super().create(model)
        except DuplicateKeyError:
            raise ConflictError(
                f"Parsed resume data already exists for candidate {model.candidate_id}",
                stage="storage",
            ) from None

    def get_by_candidate(self, candidate_id: str) -> Optional[ParsedResumeData]:
        return self.find_one({"candidate_id": candidate_id})

    def update_by_candidate(self, candidate_id: str, fields: dict[str, Any]) -> Optional[ParsedResumeData]:
        return self.update_one({"candidate_id": candidate_id}, fields)

    def delete_by_candidate(self, candidate_id: str) -> bool:
        return self.delete_one({"candidate_id": candidate_id})

    def find_by_skill(self, skill_name: str, limit: int = 100) -> list[ParsedResumeData]:
        """Parsed records listing a skill, matched case-insensitively."""
        return self.find(
            {"skills.name": {"$regex": f"^{re.escape(skill_name.strip())}$", "$options": "i"}},
            limit=limit,
        )


# Singleton instance
_parsed_resume_repository: Optional[ParsedResumeRepository] = None


def get_parsed_resume_repository() -> ParsedResumeRepository:
    """Get the parsed resume repository singleton instance."""
    global _parsed_resume_repository
    if _parsed_resume_repository is None:
        _parsed_resume_repository = ParsedResumeRepository()
    return _parsed_resume_repository
