"""
Application-wide constants for the resume ingestion pipeline.

This module contains all constant values used throughout the application.
Modify these values to customize behavior without changing code logic.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "Resume-Ingest"
APP_DISPLAY_NAME: Final[str] = "Resume Ingestion Pipeline"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# File Types
# =============================================================================

SUPPORTED_RESUME_MIME_TYPES: Final[tuple[str, ...]] = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
    "image/jpeg",
    "image/png",
    "image/gif",
)


# =============================================================================
# Skill Constants
# =============================================================================


class SkillCategory(str, Enum):
    """Buckets a normalized skill can fall into."""

    PROGRAMMING_LANGUAGES = "Programming Languages"
    FRAMEWORKS = "Frameworks & Libraries"
    DATABASES = "Databases"
    CLOUD_DEVOPS = "Cloud & DevOps"
    TOOLS = "Tools & Technologies"
    OTHER = "Other"


# Keyword buckets, checked in this order. A skill belongs to the first bucket
# with a keyword contained in its lowercased name.
SKILL_CATEGORY_KEYWORDS: Final[tuple[tuple[SkillCategory, tuple[str, ...]], ...]] = (
    (
        SkillCategory.PROGRAMMING_LANGUAGES,
        (
            "javascript", "typescript", "python", "java", "c++", "c#", "php",
            "ruby", "go", "rust", "swift", "kotlin",
        ),
    ),
    (
        SkillCategory.FRAMEWORKS,
        (
            "react", "angular", "vue", "express", "django", "flask", "spring",
            "laravel", "rails",
        ),
    ),
    (
        SkillCategory.DATABASES,
        (
            "mysql", "postgresql", "mongodb", "redis", "elasticsearch",
            "sqlite", "oracle",
        ),
    ),
    (
        SkillCategory.CLOUD_DEVOPS,
        (
            "aws", "azure", "gcp", "docker", "kubernetes", "jenkins",
            "terraform", "ansible",
        ),
    ),
    (
        SkillCategory.TOOLS,
        (
            "git", "github", "gitlab", "jira", "confluence", "slack", "figma",
            "photoshop",
        ),
    ),
)

# Canonical display names for well-known terms, keyed by normalized key
SKILL_DISPLAY_NAMES: Final[dict[str, str]] = {
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "nodejs": "Node.js",
    "reactjs": "React.js",
    "vuejs": "Vue.js",
    "angularjs": "Angular.js",
    "mongodb": "MongoDB",
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "aws": "AWS",
    "gcp": "GCP",
    "html": "HTML",
    "css": "CSS",
    "sql": "SQL",
    "api": "API",
    "rest": "REST",
    "graphql": "GraphQL",
    "docker": "Docker",
    "kubernetes": "Kubernetes",
    "git": "Git",
    "github": "GitHub",
    "gitlab": "GitLab",
}


# =============================================================================
# Enums
# =============================================================================


class AuditType(str, Enum):
    """Audit log categories."""

    PIPELINE = "PIPELINE"
    DATA = "DATA"


class AuditAction(str, Enum):
    """Types of pipeline actions that are audited."""

    PIPELINE_COMPLETED = "pipeline_completed"
    PIPELINE_FAILED = "pipeline_failed"
    PIPELINE_FORCE_FAILED = "pipeline_force_failed"
    PARSED_DATA_CREATED = "parsed_data_created"
    PARSED_DATA_UPDATED = "parsed_data_updated"
