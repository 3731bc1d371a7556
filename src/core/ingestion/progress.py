"""
Mapping between reported progress percentages and pipeline stages.

Progress percentages (what the queue reports) and pipeline stages (what the
status store records) are separate concepts joined only by the table below.
"""

from enum import Enum
from typing import Final

from src.data.models.pipeline import PipelineStage


class ProgressPhase(str, Enum):
    """Fine-grained phase of a running pipeline."""

    VALIDATION = "validation"
    PARSING_STARTING = "parsing:starting"
    TEXT_EXTRACTION = "parsing:text-extraction"
    AI_STRUCTURING = "parsing:ai-structuring"
    STORAGE_SAVING = "storage:saving"
    STORAGE_FINALIZING = "storage:finalizing"
    COMPLETED = "completed"

    @property
    def stage(self) -> PipelineStage:
        """Coarse stage this phase belongs to."""
        return PipelineStage(self.value.split(":", 1)[0])

    @property
    def description(self) -> str:
        return PHASE_MESSAGES[self]


# (lower bound inclusive, upper bound exclusive, phase)
PROGRESS_TABLE: Final[tuple[tuple[int, int, ProgressPhase], ...]] = (
    (0, 10, ProgressPhase.VALIDATION),
    (10, 20, ProgressPhase.PARSING_STARTING),
    (20, 40, ProgressPhase.TEXT_EXTRACTION),
    (40, 60, ProgressPhase.AI_STRUCTURING),
    (60, 80, ProgressPhase.STORAGE_SAVING),
    (80, 100, ProgressPhase.STORAGE_FINALIZING),
    (100, 101, ProgressPhase.COMPLETED),
)

PHASE_MESSAGES: Final[dict[ProgressPhase, str]] = {
    ProgressPhase.VALIDATION: "Validating resume processing job",
    ProgressPhase.PARSING_STARTING: "Processing resume content",
    ProgressPhase.TEXT_EXTRACTION: "Extracting text from resume",
    ProgressPhase.AI_STRUCTURING: "Parsing structured data with AI",
    ProgressPhase.STORAGE_SAVING: "Saving parsed data to database",
    ProgressPhase.STORAGE_FINALIZING: "Finalizing data storage",
    ProgressPhase.COMPLETED: "Resume processing completed",
}


def phase_for_progress(percent: int) -> ProgressPhase:
    """
    Look up the phase for a progress percentage.

    Raises:
        ValueError: If ``percent`` is outside 0..100
    """
    if isinstance(percent, bool) or not isinstance(percent, int):
        raise ValueError(f"Progress must be an integer, got {percent!r}")
    for lower, upper, phase in PROGRESS_TABLE:
        if lower <= percent < upper:
            return phase
    raise ValueError(f"Progress must be within 0..100, got {percent}")


def stage_for_progress(percent: int) -> PipelineStage:
    """Coarse stage for a progress percentage."""
    return phase_for_progress(percent).stage
