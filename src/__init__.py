"""
Resume ingestion pipeline for the applicant tracking platform.
"""

__app_name__ = "Resume-Ingest"
__version__ = "0.1.0"
