"""
Business services for resume ingestion.

This module contains high-level services that orchestrate
business logic across multiple components.
"""

from src.services.parsed_resume_service import IngestionOutcome, ParsedResumeDataService

__all__ = [
    "IngestionOutcome",
    "ParsedResumeDataService",
]
