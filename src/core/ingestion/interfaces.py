"""
Interfaces of the external collaborators the pipeline orchestrates.

The document parsing engine (text extraction plus AI structuring) and the
persistence layer live outside this package. Implementations raise the
tagged errors from ``src.core.errors``; in particular an engine that is
being rate limited must raise ``RateLimitedError``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.data.models.candidate import Candidate
from src.data.models.resume import ParsedResumeData, StructuredResume


class DocumentParsingEngine(ABC):
    """
    Turns an uploaded document into structured resume data.

    The pipeline calls the two steps separately, each under its own
    timeout with a cancellation check in between. An empty ``raw_text``
    on the structured result is filled from the extracted text.
    """

    @abstractmethod
    def extract_text(self, file_location: str, mime_type: str) -> str:
        """
        Extract plain text from a stored document.

        Raises:
            RateLimitedError: If the upstream service is throttling requests
        """

    @abstractmethod
    def structure_text(self, text: str) -> StructuredResume:
        """
        Parse extracted text into structured resume fields.

        Raises:
            RateLimitedError: If the upstream service is throttling requests
        """


class ResumePersistence(ABC):
    """Storage for candidates and their parsed resume data."""

    @abstractmethod
    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        """Get a candidate by id."""

    @abstractmethod
    def get_parsed_resume_data(self, candidate_id: str) -> Optional[ParsedResumeData]:
        """Get a candidate's parsed resume data, if any."""

    @abstractmethod
    def create_parsed_resume_data(self, candidate_id: str, data: ParsedResumeData) -> ParsedResumeData:
        """
        Store parsed resume data for a candidate.

        Raises:
            ConflictError: If the candidate already has parsed resume data
        """

    @abstractmethod
    def update_parsed_resume_data(self, candidate_id: str, fields: dict[str, Any]) -> ParsedResumeData:
        """Apply field changes to a candidate's parsed resume data."""

    @abstractmethod
    def delete_parsed_resume_data(self, candidate_id: str) -> bool:
        """Delete a candidate's parsed resume data."""

    @abstractmethod
    def update_candidate_aggregate(self, candidate_id: str, aggregate: dict[str, Any]) -> None:
        """Write derived values (``total_experience``) onto a candidate."""

    @abstractmethod
    def update_candidate_profile(self, candidate_id: str, fields: dict[str, Any]) -> None:
        """Write contact fields onto a candidate."""
