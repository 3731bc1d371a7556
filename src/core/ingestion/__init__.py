"""
Resume ingestion pipeline.

Takes an uploaded resume from a queued job to stored, normalized parsed
data while reporting progress through a per-job pipeline status.

The data rules and pipeline primitives are exported here. The runtime
pieces import the parsed resume service and are imported from their own
modules:
- coordinator: stage transitions and finalization
- processor: extraction, structuring and storage stages
- worker / watchdog: dispatch, retries and stalled-job sweeping
- pipeline: wiring of all of the above
"""

from .cancellation import CancellationRegistry
from .events import PipelineEvent, PipelineEventBus, ProgressEvent
from .experience import ExperienceAggregator, calculate_total_experience, months_between
from .interfaces import DocumentParsingEngine, ResumePersistence
from .progress import PROGRESS_TABLE, ProgressPhase, phase_for_progress, stage_for_progress
from .skill_normalizer import (
    SkillNormalizer,
    categorize,
    display_name,
    group_skills_by_category,
    normalize_skills,
    with_skill_proficiency,
)
from .status_store import InMemoryPipelineStatusStore, PipelineStatusStore

__all__ = [
    "CancellationRegistry",
    "PipelineEvent",
    "PipelineEventBus",
    "ProgressEvent",
    "ExperienceAggregator",
    "calculate_total_experience",
    "months_between",
    "DocumentParsingEngine",
    "ResumePersistence",
    "PROGRESS_TABLE",
    "ProgressPhase",
    "phase_for_progress",
    "stage_for_progress",
    "SkillNormalizer",
    "categorize",
    "display_name",
    "group_skills_by_category",
    "normalize_skills",
    "with_skill_proficiency",
    "InMemoryPipelineStatusStore",
    "PipelineStatusStore",
]
