"""
API schemas for the job, review and pipeline endpoints
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .content import Category, Difficulty


# === Request Models ===

class ReviewerRequest(BaseModel):
    """Approve a job waiting for review"""
    reviewer: str = Field(min_length=1)


class RejectRequest(BaseModel):
    reviewer: str = Field(min_length=1)
    reason: str = Field(min_length=1)


class EditRequest(BaseModel):
    """Send a job back for another edit round"""
    reviewer: str = Field(min_length=1)
    note: str = ""


class PublishRequest(BaseModel):
    published_content_id: str = Field(min_length=1)
    actor: str = "publisher"


class MetadataUpdateRequest(BaseModel):
    """Reviewer corrections to generated metadata; omitted fields stay as they are"""
    reviewer: str = Field(min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[Category] = None
    difficulty: Optional[Difficulty] = None


# === Response Models ===

class JobSummary(BaseModel):
    id: str
    source_video_id: str
    source_title: Optional[str] = None
    status: str
    quality_score: Optional[int] = None
    review_priority: Optional[str] = None
    retry_count: int = 0
    edit_rounds: int = 0
    title: Optional[str] = None
    error_message: Optional[str] = None
    updated_at: datetime


class StageRunResponse(BaseModel):
    stage: str
    selected: int
    succeeded: int
    retried: int
    failed: int
    skipped: int
    halted: bool = False


class DashboardStats(BaseModel):
    counts_by_status: Dict[str, int]
    pending_review: int
    high_priority: int
    average_quality_score: Optional[float] = None
