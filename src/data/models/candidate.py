"""
Candidate data model.

Only the parts of the candidate aggregate that the ingestion pipeline reads
or writes are modeled here: identity, contact fields that parsed resumes
may back-fill, and the derived total experience.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .base import BaseDocument

# Contact fields the pipeline may fill in from a parsed resume
BACKFILL_CONTACT_FIELDS: tuple[str, ...] = (
    "email",
    "phone",
    "location",
    "linkedin_url",
    "portfolio_url",
)


class Candidate(BaseDocument):
    """
    A job applicant.

    ``total_experience`` is derived: it is recomputed from the candidate's
    parsed work history and never edited directly.
    """

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None

    # Years, one decimal
    total_experience: float = Field(default=0.0, ge=0)

    @property
    def full_name(self) -> str:
        """Get candidate's full name."""
        return f"{self.first_name} {self.last_name}"

    def missing_contact_fields(self) -> list[str]:
        """Contact fields that are still empty."""
        return [name for name in BACKFILL_CONTACT_FIELDS if not getattr(self, name)]

    class Settings:
        """MongoDB collection settings."""

        name = "candidates"
        indexes = [
            "created_at",
        ]


class CandidateAggregateUpdate(BaseModel):
    """Derived values written back onto a candidate."""

    total_experience: float = Field(..., ge=0)
