"""
JobRecord: the persisted state of one candidate video moving through the pipeline.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.exceptions import IllegalTransitionError
from .content import (
    ContentMetadata,
    EditPlan,
    Quiz,
    Segment,
    TranscriptSegment,
)
from .status import JobStatus, ReviewPriority

SYSTEM_ACTOR = "SYSTEM"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    return uuid.uuid4().hex


class JobRecord(BaseModel):
    """
    One video's journey from ingestion to publication.

    Records are treated as immutable values: stages build the next version
    with transition() or evolve(), which re-run validation, and hand it to
    the job store in a single write.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_job_id)
    source_video_id: str
    source_channel_id: Optional[str] = None
    source_channel_title: Optional[str] = None
    source_title: Optional[str] = None
    language: str = "ko"

    status: JobStatus = JobStatus.PENDING
    retry_count: int = Field(default=0, ge=0)
    edit_rounds: int = Field(default=0, ge=0)

    quality_score: Optional[int] = Field(default=None, ge=0, le=100)
    prescreen_score: Optional[int] = Field(default=None, ge=0, le=100)
    review_priority: Optional[ReviewPriority] = None

    raw_video_key: Optional[str] = None
    edited_video_key: Optional[str] = None
    thumbnail_key: Optional[str] = None

    transcript: Optional[str] = None
    transcript_segments: List[TranscriptSegment] = Field(default_factory=list)
    segments: List[Segment] = Field(default_factory=list)
    edit_plan: Optional[EditPlan] = None
    generated_metadata: Optional[ContentMetadata] = None
    quiz: Optional[Quiz] = None

    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None
    stt_provider: Optional[str] = None

    review_note: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    published_content_id: Optional[str] = None

    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    created_by: str = SYSTEM_ACTOR
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: str = SYSTEM_ACTOR
    version: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_status_fields(self) -> "JobRecord":
        awaiting_review = self.status == JobStatus.PENDING_APPROVAL
        if awaiting_review and self.review_priority is None:
            raise ValueError("review_priority is required while PENDING_APPROVAL")
        if not awaiting_review and self.review_priority is not None:
            raise ValueError(f"review_priority must be empty in status {self.status.value}")
        if self.error_message and self.status != JobStatus.FAILED:
            raise ValueError("error_message is only allowed on FAILED jobs")
        return self

    @property
    def is_active(self) -> bool:
        return self.status.is_active()

    def evolve(self, actor: str = SYSTEM_ACTOR, **changes: Any) -> "JobRecord":
        """Return a validated copy with `changes` applied and audit fields stamped."""
        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = utc_now()
        data["updated_by"] = actor
        return type(self).model_validate(data)

    def transition(self, target: JobStatus, actor: str = SYSTEM_ACTOR, **changes: Any) -> "JobRecord":
        """Move to `target`, refusing edges outside the transition table."""
        if not self.status.can_transition_to(target):
            raise IllegalTransitionError(
                f"Job {self.id}: {self.status.value} -> {target.value} is not allowed"
            )
        if target != JobStatus.PENDING_APPROVAL:
            changes.setdefault("review_priority", None)
        return self.evolve(actor=actor, status=target, **changes)

    def fail(self, message: str, actor: str = SYSTEM_ACTOR) -> "JobRecord":
        return self.transition(JobStatus.FAILED, actor=actor, error_message=message)


__all__ = ["JobRecord", "SYSTEM_ACTOR", "utc_now", "new_job_id"]
