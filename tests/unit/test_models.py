"""
Tests for Pydantic data models in src.data.models.
"""

from datetime import date, datetime

import pytest
from bson import ObjectId
from pydantic import ValidationError

from src.data.models import (
    Candidate,
    ParsedResumeData,
    ParsedResumeDataCreate,
    PipelineStage,
    PipelineStatus,
    ProcessingJob,
    ProcessingResult,
    Skill,
    StructuredResume,
    WorkExperience,
)
from src.data.models.base import BaseDocument, PyObjectId, TimestampMixin, to_bson_compatible


# ═══════════════════════════════════════════════════════════════════════════
#  base.py
# ═══════════════════════════════════════════════════════════════════════════


class TestPyObjectId:
    def test_validate_valid_string(self):
        oid = ObjectId()
        result = PyObjectId.validate(str(oid))
        assert result == oid

    def test_validate_object_id_passthrough(self):
        oid = ObjectId()
        assert PyObjectId.validate(oid) is oid

    def test_validate_invalid_string(self):
        with pytest.raises(ValueError, match="Invalid ObjectId"):
            PyObjectId.validate("not-a-valid-id")


class TestTimestampMixin:
    def test_auto_timestamps(self):
        ts = TimestampMixin()
        assert isinstance(ts.created_at, datetime)
        assert isinstance(ts.updated_at, datetime)


class TestBaseDocument:
    def test_model_dump_mongo_excludes_none_id(self):
        data = BaseDocument().model_dump_mongo()
        assert "_id" not in data

    def test_model_dump_mongo_includes_set_id(self):
        oid = ObjectId()
        data = BaseDocument(id=oid).model_dump_mongo()
        assert data["_id"] == oid

    def test_id_str(self):
        oid = ObjectId()
        assert BaseDocument(id=oid).id_str == str(oid)
        assert BaseDocument().id_str is None


class TestToBsonCompatible:
    def test_dates_become_datetimes(self):
        converted = to_bson_compatible({"when": date(2024, 1, 5), "items": [date(2020, 2, 1)]})
        assert converted == {"when": datetime(2024, 1, 5), "items": [datetime(2020, 2, 1)]}

    def test_enums_by_value(self):
        assert to_bson_compatible([PipelineStage.PARSING]) == ["parsing"]

    def test_datetimes_untouched(self):
        now = datetime(2024, 1, 5, 10, 30)
        assert to_bson_compatible(now) is now


# ═══════════════════════════════════════════════════════════════════════════
#  candidate.py
# ═══════════════════════════════════════════════════════════════════════════


class TestCandidate:
    def test_defaults(self):
        c = Candidate(first_name="Jane", last_name="Smith")
        assert c.full_name == "Jane Smith"
        assert c.total_experience == 0.0

    def test_missing_contact_fields(self, candidate):
        assert candidate.missing_contact_fields() == ["email", "location", "linkedin_url", "portfolio_url"]

    def test_negative_experience_rejected(self):
        with pytest.raises(ValidationError):
            Candidate(first_name="Jane", last_name="Smith", total_experience=-1)


# ═══════════════════════════════════════════════════════════════════════════
#  resume.py
# ═══════════════════════════════════════════════════════════════════════════


class TestSkill:
    def test_normalized_key(self):
        assert Skill(name="  React ").normalized_key == "react"

    def test_frozen(self):
        skill = Skill(name="python")
        with pytest.raises(ValidationError):
            skill.name = "go"

    def test_proficiency_or_zero(self):
        assert Skill(name="python").proficiency_or_zero == 0.0
        assert Skill(name="python", proficiency=75).proficiency_or_zero == 75


class TestWorkExperience:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2021", date(2021, 1, 1)),
            ("2021-07", date(2021, 7, 1)),
            ("2021/7", date(2021, 7, 1)),
            ("2021-07-15", date(2021, 7, 15)),
            ("", None),
            (datetime(2021, 7, 15, 9, 0), date(2021, 7, 15)),
        ],
    )
    def test_partial_dates(self, raw, expected):
        assert WorkExperience(start_date=raw).start_date == expected


class TestStructuredResume:
    def test_accepts_camel_case_and_plain_names(self):
        structured = StructuredResume.model_validate(
            {
                "skills": ["Python", {"name": "Go", "proficiency": 50}],
                "workExperience": [{"company": "Acme", "start_date": "2020"}],
                "certifications": ["CKA"],
                "rawText": "text",
                "personalInfo": {"email": "a@b.io"},
            }
        )
        assert [s.name for s in structured.skills] == ["Python", "Go"]
        assert structured.work_experience[0].start_date == date(2020, 1, 1)
        assert structured.certifications[0].name == "CKA"
        assert structured.personal_info.email == "a@b.io"

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            StructuredResume(confidence=1.5)


class TestParsedResumeData:
    def test_from_structured(self, structured_resume):
        create = ParsedResumeDataCreate.from_structured(structured_resume)
        assert create.experience == structured_resume.work_experience
        assert create.parsing_confidence == 0.87

    def test_empty_raw_text_becomes_none(self):
        assert ParsedResumeDataCreate.from_structured(StructuredResume()).raw_text is None

    def test_skill_names(self):
        record = ParsedResumeData(candidate_id="c1", skills=[Skill(name="Python"), Skill(name="SQL")])
        assert record.skill_names == ["Python", "SQL"]


# ═══════════════════════════════════════════════════════════════════════════
#  pipeline.py
# ═══════════════════════════════════════════════════════════════════════════


class TestPipelineStage:
    def test_terminal_stages(self):
        assert {s for s in PipelineStage if s.is_terminal} == {PipelineStage.COMPLETED, PipelineStage.FAILED}


class TestProcessingJob:
    def test_file_path_preferred(self):
        job = ProcessingJob.model_validate(
            {"jobId": "j1", "filePath": "/tmp/cv.pdf", "fileUrl": "https://files/cv.pdf"}
        )
        assert job.file_location == "/tmp/cv.pdf"
        assert job.file_url == "https://files/cv.pdf"

    def test_file_url_fallback(self):
        job = ProcessingJob.model_validate({"jobId": "j1", "fileUrl": "https://files/cv.pdf"})
        assert job.file_location == "https://files/cv.pdf"

    def test_from_intake_stringifies_job_id(self):
        job = ProcessingJob.from_intake({"jobId": 42, "candidateId": "c1", "mimeType": "application/pdf"})
        assert job.job_id == "42"
        assert job.candidate_id == "c1"

    def test_frozen(self):
        job = ProcessingJob(job_id="j1")
        with pytest.raises(ValidationError):
            job.candidate_id = "c2"

    def test_missing_job_id(self):
        with pytest.raises(ValidationError):
            ProcessingJob.model_validate({"candidateId": "c1"})


class TestPipelineStatus:
    def test_notify_returns_new_list(self):
        status = PipelineStatus(job_id="j1")
        log = status.notify("hello", at=datetime(2024, 1, 1))
        assert status.notifications == []
        assert len(log) == 1
        assert log[0].stage == "validation"
        assert log[0].type == "info"

    def test_progress_bounds(self):
        with pytest.raises(ValidationError):
            PipelineStatus(job_id="j1", progress=101)

    def test_is_terminal(self):
        assert PipelineStatus(job_id="j1", stage=PipelineStage.FAILED).is_terminal
        assert not PipelineStatus(job_id="j1", stage=PipelineStage.STORAGE).is_terminal


class TestProcessingResult:
    def test_success_payload_has_no_error(self):
        payload = ProcessingResult(candidate_id="c1", success=True, processing_time=12).to_payload()
        assert payload == {"candidateId": "c1", "success": True, "processingTime": 12}

    def test_failure_payload(self):
        payload = ProcessingResult(candidate_id="c1", success=False, error="boom").to_payload()
        assert payload["error"] == "boom"
        assert payload["processingTime"] == 0
