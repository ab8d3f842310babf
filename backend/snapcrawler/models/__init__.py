"""
Domain models and API schemas
"""

from .status import JobStatus, ReviewPriority, ALLOWED_TRANSITIONS, TERMINAL_STATUSES
from .content import (
    NEUTRAL_SCORE,
    ContentLanguage,
    Category,
    Difficulty,
    Recommendation,
    TranscriptSegment,
    Transcript,
    Segment,
    ClipSegment,
    EditPlan,
    ContentMetadata,
    QuizOption,
    Quiz,
    SearchQuery,
    SearchContext,
    VideoCandidate,
    VideoEvaluation,
    RenderedClip,
)
from .job import JobRecord, SYSTEM_ACTOR, utc_now
from .api import (
    ReviewerRequest,
    RejectRequest,
    EditRequest,
    PublishRequest,
    MetadataUpdateRequest,
    JobSummary,
    StageRunResponse,
    DashboardStats,
)

__all__ = [
    "JobStatus",
    "ReviewPriority",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "NEUTRAL_SCORE",
    "ContentLanguage",
    "Category",
    "Difficulty",
    "Recommendation",
    "TranscriptSegment",
    "Transcript",
    "Segment",
    "ClipSegment",
    "EditPlan",
    "ContentMetadata",
    "QuizOption",
    "Quiz",
    "SearchQuery",
    "SearchContext",
    "VideoCandidate",
    "VideoEvaluation",
    "RenderedClip",
    "JobRecord",
    "SYSTEM_ACTOR",
    "utc_now",
    "ReviewerRequest",
    "RejectRequest",
    "EditRequest",
    "PublishRequest",
    "MetadataUpdateRequest",
    "JobSummary",
    "StageRunResponse",
    "DashboardStats",
]
