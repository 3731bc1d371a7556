"""
Shared test fixtures for the resume ingestion test suite.

Sets environment variables before any src imports to prevent config failures,
then provides in-memory fakes for the pipeline's external collaborators and
sample model fixtures.
"""

import os

# === Set environment BEFORE any src imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "resume_ingest_test")
os.environ.setdefault("LOG_CONSOLE_OUTPUT", "false")

import threading
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pytest
from bson import ObjectId

from src.core.errors import ConflictError
from src.core.ingestion.interfaces import DocumentParsingEngine, ResumePersistence
from src.core.ingestion.pipeline import IngestionPipeline, build_pipeline
from src.core.ingestion.status_store import InMemoryPipelineStatusStore
from src.data.models import (
    Candidate,
    ParsedResumeData,
    PersonalInfo,
    ProcessingJob,
    Skill,
    StructuredResume,
    WorkExperience,
)


# ---------------------------------------------------------------------------
# Fakes for external collaborators
# ---------------------------------------------------------------------------


class FakeParsingEngine(DocumentParsingEngine):
    """
    Parsing engine returning canned output.

    ``extract_errors`` and ``structure_errors`` are consumed one per call;
    ``None`` entries mean "succeed this time".
    """

    def __init__(
        self,
        structured: StructuredResume,
        text: str = "Jane Smith - Senior Engineer",
        extract_errors: Optional[list[Optional[Exception]]] = None,
        structure_errors: Optional[list[Optional[Exception]]] = None,
    ):
        self.structured = structured
        self.text = text
        self.extract_errors = list(extract_errors or [])
        self.structure_errors = list(structure_errors or [])
        self.extract_calls: list[tuple[str, str]] = []
        self.structure_calls: list[str] = []
        self.before_structure: Optional[Any] = None

    @property
    def calls(self) -> int:
        return len(self.extract_calls) + len(self.structure_calls)

    def extract_text(self, file_location: str, mime_type: str) -> str:
        self.extract_calls.append((file_location, mime_type))
        if self.extract_errors:
            err = self.extract_errors.pop(0)
            if err is not None:
                raise err
        return self.text

    def structure_text(self, text: str) -> StructuredResume:
        self.structure_calls.append(text)
        if self.before_structure is not None:
            self.before_structure()
        if self.structure_errors:
            err = self.structure_errors.pop(0)
            if err is not None:
                raise err
        return self.structured


class InMemoryResumePersistence(ResumePersistence):
    """Dictionary-backed persistence that records every call."""

    def __init__(self, candidates: Optional[list[Candidate]] = None):
        self.candidates: dict[str, Candidate] = {c.id_str: c for c in candidates or []}
        self.parsed: dict[str, ParsedResumeData] = {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        self.calls.append("get_candidate")
        return self.candidates.get(candidate_id)

    def get_parsed_resume_data(self, candidate_id: str) -> Optional[ParsedResumeData]:
        self.calls.append("get_parsed_resume_data")
        return self.parsed.get(candidate_id)

    def create_parsed_resume_data(self, candidate_id: str, data: ParsedResumeData) -> ParsedResumeData:
        self.calls.append("create_parsed_resume_data")
        with self._lock:
            if candidate_id in self.parsed:
                raise ConflictError(f"Parsed resume data already exists for candidate {candidate_id}")
            saved = data.model_copy(update={"id": ObjectId()})
            self.parsed[candidate_id] = saved
        return saved

    def update_parsed_resume_data(self, candidate_id: str, fields: dict[str, Any]) -> ParsedResumeData:
        self.calls.append("update_parsed_resume_data")
        current = self.parsed[candidate_id]
        updated = ParsedResumeData.model_validate({**current.model_dump(), **fields})
        self.parsed[candidate_id] = updated
        return updated

    def delete_parsed_resume_data(self, candidate_id: str) -> bool:
        self.calls.append("delete_parsed_resume_data")
        return self.parsed.pop(candidate_id, None) is not None

    def update_candidate_aggregate(self, candidate_id: str, aggregate: dict[str, Any]) -> None:
        self.calls.append("update_candidate_aggregate")
        self.candidates[candidate_id] = self.candidates[candidate_id].model_copy(update=aggregate)

    def update_candidate_profile(self, candidate_id: str, fields: dict[str, Any]) -> None:
        self.calls.append("update_candidate_profile")
        self.candidates[candidate_id] = self.candidates[candidate_id].model_copy(update=fields)


class FixedClock:
    """Controllable replacement for ``datetime.utcnow``."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Sample model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def candidate() -> Candidate:
    return Candidate(
        id=ObjectId(),
        first_name="Jane",
        last_name="Smith",
        phone="+1-555-0100",
    )


@pytest.fixture
def candidate_id(candidate) -> str:
    return candidate.id_str


@pytest.fixture
def work_history() -> list[WorkExperience]:
    """Two closed positions totalling 48 months."""
    return [
        WorkExperience(
            company="Acme Corp",
            position="Software Engineer",
            start_date=date(2020, 1, 1),
            end_date=date(2022, 1, 1),
        ),
        WorkExperience(
            company="Globex",
            position="Senior Software Engineer",
            start_date=date(2022, 6, 1),
            end_date=date(2024, 6, 1),
        ),
    ]


@pytest.fixture
def structured_resume(work_history) -> StructuredResume:
    return StructuredResume(
        skills=[
            Skill(name="javascript", proficiency=60),
            Skill(name="JavaScript", proficiency=80),
            Skill(name="python", proficiency=90),
            Skill(name="react"),
        ],
        work_experience=work_history,
        certifications=["AWS Certified Developer"],
        summary="Backend engineer with a frontend streak.",
        raw_text="Jane Smith\nSenior Software Engineer",
        confidence=0.87,
        personal_info=PersonalInfo(
            email="jane.smith@example.com",
            phone="+1-555-9999",
            location="Berlin",
        ),
    )


# ---------------------------------------------------------------------------
# Pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def persistence(candidate) -> InMemoryResumePersistence:
    return InMemoryResumePersistence([candidate])


@pytest.fixture
def engine(structured_resume) -> FakeParsingEngine:
    return FakeParsingEngine(structured_resume)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def status_store() -> InMemoryPipelineStatusStore:
    return InMemoryPipelineStatusStore()


@pytest.fixture
def pipeline(engine, persistence, status_store, clock) -> IngestionPipeline:
    built = build_pipeline(engine, persistence, status_store=status_store, clock=clock, stage_timeout=5)
    yield built
    built.shutdown()


@pytest.fixture
def coordinator(pipeline):
    return pipeline.coordinator


@pytest.fixture
def make_job(candidate_id):
    """Factory that returns a callable to build ProcessingJob instances."""

    counter = {"n": 0}

    def _factory(**overrides) -> ProcessingJob:
        counter["n"] += 1
        data: dict[str, Any] = {
            "jobId": f"job-{counter['n']}",
            "candidateId": candidate_id,
            "filePath": "/uploads/resumes/jane-smith.pdf",
            "originalName": "jane-smith.pdf",
            "mimeType": "application/pdf",
        }
        data.update(overrides)
        return ProcessingJob.model_validate(data)

    return _factory
