"""
Job status and review priority enumerations.

The transition table below is the single source of truth for which status
changes are legal. Stages and the review service both go through
JobRecord.transition(), which checks it.
"""

from enum import Enum
from typing import Dict, FrozenSet


class JobStatus(str, Enum):
    """Lifecycle of one candidate video."""

    PENDING = "PENDING"
    CRAWLED = "CRAWLED"
    TRANSCRIBED = "TRANSCRIBED"
    ANALYZED = "ANALYZED"
    EDITED = "EDITED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_EDIT = "NEEDS_EDIT"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"

    def is_terminal(self) -> bool:
        """No further transitions are possible from this status."""
        return self in TERMINAL_STATUSES

    def is_active(self) -> bool:
        """Counts against the one-active-job-per-source-video rule."""
        return not self.is_terminal()

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in ALLOWED_TRANSITIONS.get(self, frozenset())


class ReviewPriority(str, Enum):
    """Sort key for the human review queue."""

    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {ReviewPriority.HIGH: 0, ReviewPriority.NORMAL: 1, ReviewPriority.LOW: 2}

TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset(
    {JobStatus.PUBLISHED, JobStatus.REJECTED, JobStatus.FAILED}
)

ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.CRAWLED, JobStatus.FAILED}),
    JobStatus.CRAWLED: frozenset({JobStatus.TRANSCRIBED, JobStatus.FAILED}),
    JobStatus.TRANSCRIBED: frozenset({JobStatus.ANALYZED, JobStatus.FAILED}),
    JobStatus.ANALYZED: frozenset({JobStatus.EDITED, JobStatus.FAILED}),
    JobStatus.EDITED: frozenset({JobStatus.PENDING_APPROVAL, JobStatus.REJECTED, JobStatus.FAILED}),
    JobStatus.PENDING_APPROVAL: frozenset(
        {JobStatus.APPROVED, JobStatus.REJECTED, JobStatus.NEEDS_EDIT, JobStatus.FAILED}
    ),
    JobStatus.APPROVED: frozenset({JobStatus.PUBLISHED, JobStatus.FAILED}),
    JobStatus.NEEDS_EDIT: frozenset({JobStatus.ANALYZED, JobStatus.FAILED}),
    JobStatus.PUBLISHED: frozenset(),
    JobStatus.REJECTED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


__all__ = [
    "JobStatus",
    "ReviewPriority",
    "TERMINAL_STATUSES",
    "ALLOWED_TRANSITIONS",
]
