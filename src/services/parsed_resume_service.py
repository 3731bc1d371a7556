"""
Parsed resume data service.

Owns the rules for a candidate's ``ParsedResumeData``: one record per
candidate, normalized skills, and a candidate ``total_experience`` that is
always recomputed from the stored work history.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from src.core.errors import CandidateNotFoundError, ConflictError, ParsedDataNotFoundError
from src.core.ingestion.experience import ExperienceAggregator
from src.core.ingestion.interfaces import ResumePersistence
from src.core.ingestion.skill_normalizer import (
    SkillNormalizer,
    group_skills_by_category,
    with_skill_proficiency,
)
from src.data.models.candidate import CandidateAggregateUpdate
from src.data.models.resume import (
    ParsedResumeData,
    ParsedResumeDataCreate,
    ParsedResumeDataUpdate,
    Skill,
    StructuredResume,
)
from src.utils.constants import AuditAction, AuditType
from src.utils.logger import LoggerMixin, audit_log

_email_adapter = TypeAdapter(EmailStr)


@dataclass
class IngestionOutcome:
    """What storing a parsed resume changed."""

    parsed_data: ParsedResumeData
    total_experience: float
    backfilled_fields: list[str] = field(default_factory=list)


class ParsedResumeDataService(LoggerMixin):
    """Creates, updates and queries parsed resume data for candidates."""

    def __init__(
        self,
        persistence: ResumePersistence,
        normalizer: Optional[SkillNormalizer] = None,
        aggregator: Optional[ExperienceAggregator] = None,
    ):
        self._persistence = persistence
        self._normalizer = normalizer or SkillNormalizer()
        self._aggregator = aggregator or ExperienceAggregator()

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create(self, candidate_id: str, payload: ParsedResumeDataCreate) -> IngestionOutcome:
        """
        Create parsed resume data for a candidate.

        Skills are normalized and the candidate's total experience is
        recomputed from ``payload.experience``.

        Raises:
            CandidateNotFoundError: If the candidate does not exist
            ConflictError: If the candidate already has parsed resume data
        """
        if self._persistence.get_candidate(candidate_id) is None:
            raise CandidateNotFoundError(candidate_id, stage="storage")

        if self._persistence.get_parsed_resume_data(candidate_id) is not None:
            raise ConflictError(
                f"Parsed resume data already exists for candidate {candidate_id}",
                stage="storage",
            )

        total_experience = self._aggregator.total_years(payload.experience)
        record = ParsedResumeData(
            candidate_id=candidate_id,
            skills=self._normalizer.normalize(payload.skills),
            experience=payload.experience,
            education=payload.education,
            certifications=payload.certifications,
            summary=payload.summary,
            raw_text=payload.raw_text,
            parsing_confidence=payload.parsing_confidence,
        )

        saved = self._persistence.create_parsed_resume_data(candidate_id, record)
        self._write_total_experience(candidate_id, total_experience)

        self.logger.info(
            f"Stored parsed resume data for candidate {candidate_id}: "
            f"{len(saved.skills)} skills, {total_experience} years"
        )
        audit_log(
            AuditAction.PARSED_DATA_CREATED,
            {
                "candidate_id": candidate_id,
                "skill_count": len(saved.skills),
                "total_experience": total_experience,
            },
            audit_type=AuditType.DATA,
        )
        return IngestionOutcome(parsed_data=saved, total_experience=total_experience)

    def ingest(self, candidate_id: str, structured: StructuredResume) -> IngestionOutcome:
        """
        Store parsing engine output for a candidate.

        After creating the record, empty contact fields on the candidate
        are filled from the resume's personal info.
        """
        outcome = self.create(candidate_id, ParsedResumeDataCreate.from_structured(structured))
        if structured.personal_info is not None:
            outcome.backfilled_fields = self._backfill_contact(candidate_id, structured)
        return outcome

    def _backfill_contact(self, candidate_id: str, structured: StructuredResume) -> list[str]:
        candidate = self._persistence.get_candidate(candidate_id)
        if candidate is None:
            return []

        info = structured.personal_info.model_dump()
        fields: dict[str, Any] = {}
        for name in candidate.missing_contact_fields():
            value = info.get(name)
            if not value:
                continue
            if name == "email":
                try:
                    value = _email_adapter.validate_python(value)
                except PydanticValidationError:
                    self.logger.warning(f"Ignoring malformed email in resume for candidate {candidate_id}")
                    continue
            fields[name] = value

        if fields:
            self._persistence.update_candidate_profile(candidate_id, fields)
            self.logger.debug(f"Back-filled {sorted(fields)} for candidate {candidate_id}")
        return sorted(fields)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find_by_candidate(self, candidate_id: str) -> Optional[ParsedResumeData]:
        return self._persistence.get_parsed_resume_data(candidate_id)

    def get_skills_by_category(self, candidate_id: str) -> dict[str, list[Skill]]:
        """Group a candidate's skills by category; empty if there is no data."""
        parsed = self._persistence.get_parsed_resume_data(candidate_id)
        if parsed is None or not parsed.skills:
            return {}
        return group_skills_by_category(parsed.skills)

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update(self, candidate_id: str, changes: ParsedResumeDataUpdate) -> ParsedResumeData:
        """
        Apply changes to a candidate's parsed resume data.

        New skill lists are normalized. A new experience list triggers a
        rewrite of the candidate's total experience.

        Raises:
            ParsedDataNotFoundError: If the candidate has no parsed resume data
        """
        self._require(candidate_id)

        fields = changes.model_dump(exclude_none=True)
        if changes.skills is not None:
            fields["skills"] = [s.model_dump() for s in self._normalizer.normalize(changes.skills)]

        updated = self._persistence.update_parsed_resume_data(candidate_id, fields)

        if changes.experience is not None:
            self._write_total_experience(candidate_id, self._aggregator.total_years(changes.experience))

        audit_log(
            AuditAction.PARSED_DATA_UPDATED,
            {"candidate_id": candidate_id, "fields": sorted(fields)},
            audit_type=AuditType.DATA,
        )
        return updated

    def update_skill_proficiency(self, candidate_id: str, skill_name: str, proficiency: float) -> ParsedResumeData:
        """
        Set the proficiency of one skill, matched case-insensitively.

        Raises:
            ParsedDataNotFoundError: If the candidate has no parsed resume data
            SkillNotFoundError: If the skill is not in the candidate's list
        """
        parsed = self._require(candidate_id)
        skills = with_skill_proficiency(parsed.skills, skill_name, proficiency)
        return self._persistence.update_parsed_resume_data(
            candidate_id, {"skills": [s.model_dump() for s in skills]}
        )

    def remove(self, candidate_id: str) -> None:
        """
        Delete a candidate's parsed resume data and reset total experience.

        Raises:
            ParsedDataNotFoundError: If there was nothing to delete
        """
        if not self._persistence.delete_parsed_resume_data(candidate_id):
            raise ParsedDataNotFoundError(f"No parsed resume data for candidate {candidate_id}")
        self._write_total_experience(candidate_id, 0.0)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require(self, candidate_id: str) -> ParsedResumeData:
        parsed = self._persistence.get_parsed_resume_data(candidate_id)
        if parsed is None:
            raise ParsedDataNotFoundError(f"No parsed resume data for candidate {candidate_id}")
        return parsed

    def _write_total_experience(self, candidate_id: str, total_experience: float) -> None:
        aggregate = CandidateAggregateUpdate(total_experience=total_experience)
        self._persistence.update_candidate_aggregate(candidate_id, aggregate.model_dump())
