"""
Core business logic for resume ingestion.

Submodules:
- errors: tagged error taxonomy and retry classification
- ingestion: the resume ingestion pipeline
"""
