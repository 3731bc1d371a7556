"""
Tests for src.utils.constants and src.utils.config.
"""

import pytest

from src.utils.config import AppSettings, PipelineSettings, get_settings
from src.utils.constants import (
    SKILL_CATEGORY_KEYWORDS,
    SKILL_DISPLAY_NAMES,
    SUPPORTED_RESUME_MIME_TYPES,
    AuditAction,
    SkillCategory,
)


# ── Enum value correctness ──────────────────────────────────────────────────


class TestAuditAction:
    def test_pipeline_actions(self):
        assert AuditAction.PIPELINE_COMPLETED.value == "pipeline_completed"
        assert AuditAction.PIPELINE_FAILED.value == "pipeline_failed"
        assert AuditAction.PIPELINE_FORCE_FAILED.value == "pipeline_force_failed"


# ── Skill tables ────────────────────────────────────────────────────────────


class TestSkillTables:
    def test_category_order(self):
        assert [category for category, _ in SKILL_CATEGORY_KEYWORDS] == [
            SkillCategory.PROGRAMMING_LANGUAGES,
            SkillCategory.FRAMEWORKS,
            SkillCategory.DATABASES,
            SkillCategory.CLOUD_DEVOPS,
            SkillCategory.TOOLS,
        ]

    def test_keywords_are_lowercase(self):
        for _, keywords in SKILL_CATEGORY_KEYWORDS:
            assert all(k == k.lower() for k in keywords)

    def test_display_names_keyed_by_lowercase(self):
        assert all(key == key.lower() for key in SKILL_DISPLAY_NAMES)

    def test_other_is_not_a_keyword_bucket(self):
        assert SkillCategory.OTHER not in {category for category, _ in SKILL_CATEGORY_KEYWORDS}


# ── Settings ────────────────────────────────────────────────────────────────


class TestPipelineSettings:
    def test_defaults(self):
        settings = PipelineSettings()
        assert settings.max_attempts == 3
        assert settings.status_backend == "memory"
        assert settings.allowed_mime_types == SUPPORTED_RESUME_MIME_TYPES

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PIPELINE_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("PIPELINE_STATUS_BACKEND", "mongodb")
        settings = PipelineSettings()
        assert settings.max_attempts == 5
        assert settings.status_backend == "mongodb"

    def test_mime_types_normalized(self):
        settings = PipelineSettings(allowed_mime_types=(" Application/PDF ", ""))
        assert settings.allowed_mime_types == ("application/pdf",)

    def test_invalid_backend(self):
        with pytest.raises(ValueError):
            PipelineSettings(status_backend="redis")


class TestAppSettings:
    def test_testing_environment(self):
        assert get_settings().environment == "testing"

    def test_nested_defaults(self):
        settings = AppSettings()
        assert settings.database.port == 27017
        assert settings.pipeline.worker_count >= 1
