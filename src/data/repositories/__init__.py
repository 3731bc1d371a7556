"""
Database repositories for resume ingestion.

This module provides repository classes for the collections the pipeline
reads and writes, implementing the repository pattern for clean data access.
"""

# Base repository
from .base import BaseRepository

# Entity repositories
from .candidate_repository import CandidateRepository, get_candidate_repository
from .parsed_resume_repository import ParsedResumeRepository, get_parsed_resume_repository

# Pipeline adapters
from .pipeline_status_repository import MongoPipelineStatusStore
from .resume_persistence import MongoResumePersistence

__all__ = [
    # Base
    "BaseRepository",
    # Candidate
    "CandidateRepository",
    "get_candidate_repository",
    # Parsed resume data
    "ParsedResumeRepository",
    "get_parsed_resume_repository",
    # Pipeline
    "MongoPipelineStatusStore",
    "MongoResumePersistence",
]
