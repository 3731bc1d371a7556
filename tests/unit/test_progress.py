"""
Tests for src.core.ingestion.progress — progress percentage to stage mapping.
"""

import pytest

from src.core.ingestion.progress import (
    PROGRESS_TABLE,
    ProgressPhase,
    phase_for_progress,
    stage_for_progress,
)
from src.data.models import PipelineStage


class TestPhaseForProgress:
    @pytest.mark.parametrize(
        "percent, phase",
        [
            (0, ProgressPhase.VALIDATION),
            (9, ProgressPhase.VALIDATION),
            (10, ProgressPhase.PARSING_STARTING),
            (19, ProgressPhase.PARSING_STARTING),
            (20, ProgressPhase.TEXT_EXTRACTION),
            (39, ProgressPhase.TEXT_EXTRACTION),
            (40, ProgressPhase.AI_STRUCTURING),
            (60, ProgressPhase.STORAGE_SAVING),
            (80, ProgressPhase.STORAGE_FINALIZING),
            (99, ProgressPhase.STORAGE_FINALIZING),
            (100, ProgressPhase.COMPLETED),
        ],
    )
    def test_boundaries(self, percent, phase):
        assert phase_for_progress(percent) is phase

    @pytest.mark.parametrize("percent", [-1, 101, 1000])
    def test_out_of_range(self, percent):
        with pytest.raises(ValueError):
            phase_for_progress(percent)

    @pytest.mark.parametrize("percent", [12.5, "50", None, True])
    def test_non_integer(self, percent):
        with pytest.raises(ValueError):
            phase_for_progress(percent)

    def test_table_covers_every_percent_once(self):
        covered = [p for lower, upper, _ in PROGRESS_TABLE for p in range(lower, upper)]
        assert covered == list(range(0, 101))


class TestStageForProgress:
    def test_reference_sequence(self):
        stages = [stage_for_progress(p) for p in (5, 10, 35, 55, 70, 100)]
        assert stages == [
            PipelineStage.VALIDATION,
            PipelineStage.PARSING,
            PipelineStage.PARSING,
            PipelineStage.PARSING,
            PipelineStage.STORAGE,
            PipelineStage.COMPLETED,
        ]

    def test_phase_stage_is_prefix(self):
        assert ProgressPhase.AI_STRUCTURING.stage is PipelineStage.PARSING
        assert ProgressPhase.STORAGE_FINALIZING.stage is PipelineStage.STORAGE
        assert ProgressPhase.COMPLETED.stage is PipelineStage.COMPLETED

    def test_every_phase_has_description(self):
        for phase in ProgressPhase:
            assert phase.description
