"""
Pydantic data models and schemas for the ingestion pipeline.

This module provides all data models used throughout the application,
including database documents, embedded models, and pipeline schemas.
"""

# Base models
from .base import BaseDocument, EmbeddedModel, PyObjectId, TimestampMixin

# Candidate models
from .candidate import BACKFILL_CONTACT_FIELDS, Candidate, CandidateAggregateUpdate

# Resume models
from .resume import (
    Certification,
    Education,
    ParsedResumeData,
    ParsedResumeDataCreate,
    ParsedResumeDataUpdate,
    PersonalInfo,
    Skill,
    StructuredResume,
    WorkExperience,
)

# Pipeline models
from .pipeline import (
    TERMINAL_STAGES,
    PipelineNotification,
    PipelineStage,
    PipelineStatistics,
    PipelineStatus,
    ProcessingJob,
    ProcessingResult,
)

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "PyObjectId",
    "TimestampMixin",
    # Candidate
    "BACKFILL_CONTACT_FIELDS",
    "Candidate",
    "CandidateAggregateUpdate",
    # Resume
    "Certification",
    "Education",
    "ParsedResumeData",
    "ParsedResumeDataCreate",
    "ParsedResumeDataUpdate",
    "PersonalInfo",
    "Skill",
    "StructuredResume",
    "WorkExperience",
    # Pipeline
    "TERMINAL_STAGES",
    "PipelineNotification",
    "PipelineStage",
    "PipelineStatistics",
    "PipelineStatus",
    "ProcessingJob",
    "ProcessingResult",
]
