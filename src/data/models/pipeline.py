"""
Pipeline data models.

Defines the ingestion job handed over by the dispatcher, the per-job
pipeline status, and the result returned to the dispatcher.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PipelineStage(str, Enum):
    """Coarse stage of a pipeline run."""

    VALIDATION = "validation"
    PARSING = "parsing"
    STORAGE = "storage"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES


TERMINAL_STAGES: frozenset[PipelineStage] = frozenset(
    {PipelineStage.COMPLETED, PipelineStage.FAILED}
)


class ProcessingJob(BaseModel):
    """
    A resume ingestion job as delivered by the dispatcher.

    Jobs are immutable once enqueued. Field values are not validated here;
    the coordinator validates them so that a malformed job can still be
    recorded as failed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    candidate_id: Optional[str] = Field(default=None, alias="candidateId")
    file_location: Optional[str] = Field(default=None, alias="fileLocation")
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    original_file_name: Optional[str] = Field(default=None, alias="originalName")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")

    @model_validator(mode="before")
    @classmethod
    def resolve_file_location(cls, data: Any) -> Any:
        """Intake payloads carry filePath and fileUrl; prefer the path."""
        if isinstance(data, dict) and not (data.get("file_location") or data.get("fileLocation")):
            location = data.get("filePath") or data.get("file_path") or data.get("fileUrl") or data.get("file_url")
            if location:
                data = {**data, "file_location": location}
        return data

    @classmethod
    def from_intake(cls, payload: dict[str, Any]) -> "ProcessingJob":
        """Build a job from a dispatcher intake payload."""
        data = dict(payload)
        if data.get("jobId") is not None:
            data["jobId"] = str(data["jobId"])
        return cls.model_validate(data)


class PipelineNotification(BaseModel):
    """An entry in a pipeline's notification log."""

    model_config = ConfigDict(frozen=True)

    type: Literal["info", "warning", "error", "success"] = "info"
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    stage: str


class PipelineStatus(BaseModel):
    """
    Current state of one job's pipeline.

    Statuses are treated as values: every change produces a new instance,
    and once ``stage`` is terminal the stored status never changes again.
    """

    model_config = ConfigDict(populate_by_name=True)

    job_id: str
    candidate_id: Optional[str] = None
    progress: int = Field(default=0, ge=0, le=100)
    stage: PipelineStage = PipelineStage.VALIDATION
    phase: Optional[str] = None
    message: Optional[str] = None
    attempts: int = 1
    retrying: bool = False
    started_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    last_error: Optional[str] = None
    notifications: list[PipelineNotification] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        """Check if the pipeline reached completed or failed."""
        return PipelineStage(self.stage).is_terminal

    def notify(
        self,
        message: str,
        type: Literal["info", "warning", "error", "success"] = "info",
        at: Optional[datetime] = None,
        stage: Optional[str] = None,
    ) -> list[PipelineNotification]:
        """Return a new notification log with one entry appended."""
        entry = PipelineNotification(
            type=type,
            message=message,
            timestamp=at or datetime.utcnow(),
            stage=stage or PipelineStage(self.stage).value,
        )
        return [*self.notifications, entry]


class ProcessingResult(BaseModel):
    """
    Outcome of a job, returned to the dispatcher.

    Success and failure share this shape. A terminal failure is reported
    through this result, never by raising.
    """

    model_config = ConfigDict(populate_by_name=True)

    candidate_id: Optional[str] = Field(default=None, alias="candidateId")
    success: bool
    error: Optional[str] = None
    processing_time: int = Field(default=0, ge=0, alias="processingTime")
    job_id: Optional[str] = Field(default=None, alias="jobId")
    total_experience: Optional[float] = Field(default=None, alias="totalExperience")
    skill_count: Optional[int] = Field(default=None, alias="skillCount")

    def to_payload(self) -> dict[str, Any]:
        """Wire form: ``{candidateId, success, error?, processingTime}``."""
        payload: dict[str, Any] = {
            "candidateId": self.candidate_id,
            "success": self.success,
            "processingTime": self.processing_time,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


class PipelineStatistics(BaseModel):
    """Counts of pipeline statuses by state."""

    total: int = 0
    active: int = 0
    retrying: int = 0
    completed: int = 0
    failed: int = 0
