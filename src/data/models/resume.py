"""
Parsed resume data models.

Defines the structured output of the document parsing engine and the
per-candidate ``ParsedResumeData`` record built from it.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import BaseDocument, EmbeddedModel

_PARTIAL_DATE = re.compile(r"^(\d{4})(?:[-/](\d{1,2}))?$")


def skill_key(name: str) -> str:
    """Lowercased skill name with runs of whitespace collapsed to one space."""
    return " ".join(name.split()).lower()


def _coerce_partial_date(value: Any) -> Any:
    """Accept "YYYY" and "YYYY-MM" as the first day of that period."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        match = _PARTIAL_DATE.match(value)
        if match:
            year, month = match.groups()
            return date(int(year), int(month or 1), 1)
    if isinstance(value, datetime):
        return value.date()
    return value


class Skill(EmbeddedModel):
    """
    A single skill.

    Skills are immutable; normalization and proficiency updates produce
    new instances.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, frozen=True)

    name: str
    category: Optional[str] = None
    proficiency: Optional[float] = Field(default=None, ge=0)
    years_of_experience: Optional[float] = Field(default=None, ge=0)

    @property
    def normalized_key(self) -> str:
        """Deduplication key; never displayed."""
        return skill_key(self.name)

    @property
    def proficiency_or_zero(self) -> float:
        """Proficiency with missing treated as 0."""
        return self.proficiency or 0.0


class WorkExperience(EmbeddedModel):
    """A single work history entry."""

    company: str = ""
    position: str = ""
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    technologies: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_partial_dates(cls, v: Any) -> Any:
        return _coerce_partial_date(v)


class Education(EmbeddedModel):
    """A single education entry."""

    institution: str = ""
    degree: str = ""
    field_of_study: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    gpa: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_partial_dates(cls, v: Any) -> Any:
        return _coerce_partial_date(v)


class Certification(EmbeddedModel):
    """A professional certification."""

    name: str
    issuer: str = ""
    issue_date: Optional[date] = None
    expiration_date: Optional[date] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None

    @field_validator("issue_date", "expiration_date", mode="before")
    @classmethod
    def parse_partial_dates(cls, v: Any) -> Any:
        return _coerce_partial_date(v)


class PersonalInfo(EmbeddedModel):
    """Contact details found in the resume."""

    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None


class StructuredResume(BaseModel):
    """Output of the document parsing engine."""

    model_config = ConfigDict(populate_by_name=True)

    skills: list[Skill] = Field(default_factory=list)
    work_experience: list[WorkExperience] = Field(default_factory=list, alias="workExperience")
    education: list[Education] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    summary: Optional[str] = None
    raw_text: str = Field(default="", alias="rawText")
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    personal_info: Optional[PersonalInfo] = Field(default=None, alias="personalInfo")

    @field_validator("certifications", mode="before")
    @classmethod
    def accept_plain_names(cls, v: Any) -> Any:
        """Engines often return certifications as bare strings."""
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("skills", mode="before")
    @classmethod
    def accept_plain_skill_names(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v


class ParsedResumeData(BaseDocument):
    """
    Structured resume content for one candidate.

    At most one record exists per candidate.
    """

    candidate_id: str
    skills: list[Skill] = Field(default_factory=list)
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    summary: Optional[str] = None
    raw_text: Optional[str] = None
    parsing_confidence: Optional[float] = Field(default=None, ge=0, le=1)

    @property
    def skill_names(self) -> list[str]:
        """Get list of all skill names."""
        return [skill.name for skill in self.skills]

    class Settings:
        """MongoDB collection settings."""

        name = "parsed_resume_data"
        indexes = [
            "candidate_id",
            "created_at",
        ]


class ParsedResumeDataCreate(BaseModel):
    """Schema for creating parsed resume data."""

    skills: list[Skill] = Field(default_factory=list)
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    summary: Optional[str] = None
    raw_text: Optional[str] = None
    parsing_confidence: Optional[float] = Field(default=None, ge=0, le=1)

    @classmethod
    def from_structured(cls, structured: StructuredResume) -> "ParsedResumeDataCreate":
        """Build a create payload from parsing engine output."""
        return cls(
            skills=structured.skills,
            experience=structured.work_experience,
            education=structured.education,
            certifications=structured.certifications,
            summary=structured.summary,
            raw_text=structured.raw_text or None,
            parsing_confidence=structured.confidence,
        )


class ParsedResumeDataUpdate(BaseModel):
    """Schema for updating existing parsed resume data."""

    skills: Optional[list[Skill]] = None
    experience: Optional[list[WorkExperience]] = None
    education: Optional[list[Education]] = None
    certifications: Optional[list[Certification]] = None
    summary: Optional[str] = None
    parsing_confidence: Optional[float] = Field(default=None, ge=0, le=1)
