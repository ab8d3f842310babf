"""
Human review decisions on jobs that passed the quality gate.
"""

from typing import List, Optional

from snapcrawler.core import PipelineError, get_logger
from snapcrawler.models.api import DashboardStats
from snapcrawler.models.job import JobRecord, utc_now
from snapcrawler.models.status import JobStatus, ReviewPriority
from snapcrawler.services.infrastructure.storage import JobStore

logger = get_logger(__name__, component="review")


class ReviewService:
    def __init__(self, store: JobStore):
        self.store = store

    def review_queue(self, limit: Optional[int] = None) -> List[JobRecord]:
        """PENDING_APPROVAL jobs: HIGH before NORMAL before LOW, best score first, then oldest."""
        jobs = self.store.find_by_status(JobStatus.PENDING_APPROVAL)
        jobs.sort(key=lambda job: (job.review_priority.rank, -(job.quality_score or 0), job.created_at))
        return jobs[:limit] if limit is not None else jobs

    def approve(self, job_id: str, reviewer: str) -> JobRecord:
        job = self.store.require(job_id)
        approved = job.transition(
            JobStatus.APPROVED,
            actor=reviewer,
            reviewed_by=reviewer,
            reviewed_at=utc_now(),
        )
        return self._save(approved, "Job approved")

    def reject(self, job_id: str, reviewer: str, reason: str) -> JobRecord:
        job = self.store.require(job_id)
        rejected = job.transition(
            JobStatus.REJECTED,
            actor=reviewer,
            reviewed_by=reviewer,
            reviewed_at=utc_now(),
            rejection_reason=reason,
        )
        return self._save(rejected, "Job rejected")

    def request_edit(self, job_id: str, reviewer: str, note: str = "") -> JobRecord:
        job = self.store.require(job_id)
        sent_back = job.transition(
            JobStatus.NEEDS_EDIT,
            actor=reviewer,
            reviewed_by=reviewer,
            reviewed_at=utc_now(),
            review_note=note or None,
        )
        return self._save(sent_back, "Edit requested")

    def mark_published(self, job_id: str, published_content_id: str, actor: str = "publisher") -> JobRecord:
        job = self.store.require(job_id)
        published = job.transition(
            JobStatus.PUBLISHED,
            actor=actor,
            published_content_id=published_content_id,
        )
        return self._save(published, "Job published")

    def update_metadata(self, job_id: str, reviewer: str, **fields) -> JobRecord:
        """Apply reviewer corrections; only allowed while the job waits for review."""
        job = self.store.require(job_id)
        if job.status != JobStatus.PENDING_APPROVAL:
            raise PipelineError(f"Metadata can only be edited while PENDING_APPROVAL, job is {job.status.value}")
        if job.generated_metadata is None:
            raise PipelineError(f"Job {job_id} has no generated metadata")
        changes = {key: value for key, value in fields.items() if value is not None}
        metadata = job.generated_metadata.model_validate(
            {**job.generated_metadata.model_dump(), **changes}
        )
        return self._save(job.evolve(actor=reviewer, generated_metadata=metadata), "Metadata updated")

    def dashboard(self) -> DashboardStats:
        counts = self.store.count_by_status()
        pending = self.store.find_by_status(JobStatus.PENDING_APPROVAL)
        scored = [job.quality_score for job in self.store.list_jobs() if job.quality_score is not None]
        return DashboardStats(
            counts_by_status={status.value: count for status, count in counts.items()},
            pending_review=len(pending),
            high_priority=sum(1 for job in pending if job.review_priority == ReviewPriority.HIGH),
            average_quality_score=round(sum(scored) / len(scored), 1) if scored else None,
        )

    def _save(self, job: JobRecord, message: str) -> JobRecord:
        saved = self.store.save(job)
        logger.info(message, extra={"job_id": saved.id, "status": saved.status.value, "actor": saved.updated_by})
        return saved
