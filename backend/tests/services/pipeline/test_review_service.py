"""
Tests for ReviewService decisions, queue ordering and dashboard
"""

from datetime import timedelta

import pytest

from snapcrawler.core import IllegalTransitionError, JobNotFoundError, PipelineError
from snapcrawler.models import Category, JobStatus, ReviewPriority
from snapcrawler.services.pipeline import ReviewService


@pytest.fixture
def review(job_store):
    return ReviewService(job_store)


@pytest.fixture
def waiting_job(job_store, make_job):
    return job_store.create(make_job(JobStatus.PENDING_APPROVAL))


class TestDecisions:
    def test_approve(self, review, job_store, waiting_job):
        approved = review.approve(waiting_job.id, "alice")

        assert approved.status == JobStatus.APPROVED
        assert approved.reviewed_by == "alice"
        assert approved.reviewed_at is not None
        assert approved.updated_by == "alice"
        assert approved.review_priority is None
        assert job_store.get(waiting_job.id).status == JobStatus.APPROVED

    def test_reject(self, review, waiting_job):
        rejected = review.reject(waiting_job.id, "bob", "Off-topic")

        assert rejected.status == JobStatus.REJECTED
        assert rejected.rejection_reason == "Off-topic"

    def test_request_edit(self, review, waiting_job):
        sent_back = review.request_edit(waiting_job.id, "carol", "Shorter intro")

        assert sent_back.status == JobStatus.NEEDS_EDIT
        assert sent_back.review_note == "Shorter intro"

    def test_publish_after_approval(self, review, waiting_job):
        review.approve(waiting_job.id, "alice")

        published = review.mark_published(waiting_job.id, "content-42")

        assert published.status == JobStatus.PUBLISHED
        assert published.published_content_id == "content-42"
        assert published.updated_by == "publisher"

    def test_publish_requires_approval(self, review, waiting_job):
        with pytest.raises(IllegalTransitionError):
            review.mark_published(waiting_job.id, "content-42")

    def test_decision_on_unreviewable_job(self, review, job_store, make_job):
        job = job_store.create(make_job(JobStatus.EDITED, source_video_id="other"))

        with pytest.raises(IllegalTransitionError):
            review.approve(job.id, "alice")

    def test_unknown_job(self, review):
        with pytest.raises(JobNotFoundError):
            review.approve("missing", "alice")


class TestUpdateMetadata:
    def test_updates_only_given_fields(self, review, waiting_job):
        updated = review.update_metadata(waiting_job.id, "dave", title="Better title", category=Category.SCIENCE)

        assert updated.generated_metadata.title == "Better title"
        assert updated.generated_metadata.category == Category.SCIENCE
        assert updated.generated_metadata.tags == waiting_job.generated_metadata.tags
        assert updated.status == JobStatus.PENDING_APPROVAL
        assert updated.updated_by == "dave"

    def test_only_while_pending_approval(self, review, waiting_job):
        review.approve(waiting_job.id, "alice")

        with pytest.raises(PipelineError):
            review.update_metadata(waiting_job.id, "dave", title="Too late")


class TestQueueAndDashboard:
    def test_queue_order(self, review, job_store, make_job):
        base = make_job(JobStatus.PENDING).created_at
        normal_old = job_store.create(make_job(
            JobStatus.PENDING_APPROVAL, source_video_id="n1", quality_score=75, created_at=base - timedelta(hours=2)
        ))
        normal_better = job_store.create(make_job(
            JobStatus.PENDING_APPROVAL, source_video_id="n2", quality_score=80, created_at=base
        ))
        high = job_store.create(make_job(
            JobStatus.PENDING_APPROVAL, source_video_id="h1", quality_score=86,
            review_priority=ReviewPriority.HIGH, created_at=base,
        ))
        normal_new = job_store.create(make_job(
            JobStatus.PENDING_APPROVAL, source_video_id="n3", quality_score=75, created_at=base - timedelta(hours=1)
        ))

        queue = review.review_queue()

        assert [job.id for job in queue] == [high.id, normal_better.id, normal_old.id, normal_new.id]
        assert len(review.review_queue(limit=2)) == 2

    def test_dashboard(self, review, job_store, make_job):
        job_store.create(make_job(
            JobStatus.PENDING_APPROVAL, source_video_id="h", quality_score=90, review_priority=ReviewPriority.HIGH
        ))
        job_store.create(make_job(JobStatus.PENDING_APPROVAL, source_video_id="n", quality_score=70))
        job_store.create(make_job(JobStatus.FAILED, source_video_id="f"))

        stats = review.dashboard()

        assert stats.counts_by_status["PENDING_APPROVAL"] == 2
        assert stats.counts_by_status["FAILED"] == 1
        assert stats.counts_by_status["PUBLISHED"] == 0
        assert stats.pending_review == 2
        assert stats.high_priority == 1
        assert stats.average_quality_score == 80.0

    def test_empty_dashboard(self, review):
        stats = review.dashboard()

        assert stats.pending_review == 0
        assert stats.average_quality_score is None
