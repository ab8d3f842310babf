"""
Human review decision routes.
"""

from fastapi import APIRouter, Depends

from ..models import (
    EditRequest,
    JobSummary,
    MetadataUpdateRequest,
    PublishRequest,
    RejectRequest,
    ReviewerRequest,
)
from ..services.pipeline import ReviewService
from .dependencies import get_review_service, pipeline_errors, to_summary

router = APIRouter(prefix="/jobs/{job_id}", tags=["review"])


@router.post("/approve", response_model=JobSummary)
async def approve(job_id: str, request: ReviewerRequest, review: ReviewService = Depends(get_review_service)):
    with pipeline_errors():
        return to_summary(review.approve(job_id, request.reviewer))


@router.post("/reject", response_model=JobSummary)
async def reject(job_id: str, request: RejectRequest, review: ReviewService = Depends(get_review_service)):
    with pipeline_errors():
        return to_summary(review.reject(job_id, request.reviewer, request.reason))


@router.post("/request-edit", response_model=JobSummary)
async def request_edit(job_id: str, request: EditRequest, review: ReviewService = Depends(get_review_service)):
    """Send a job back for another edit round"""
    with pipeline_errors():
        return to_summary(review.request_edit(job_id, request.reviewer, request.note))


@router.post("/publish", response_model=JobSummary)
async def publish(job_id: str, request: PublishRequest, review: ReviewService = Depends(get_review_service)):
    """Record that an approved job went live"""
    with pipeline_errors():
        return to_summary(review.mark_published(job_id, request.published_content_id, request.actor))


@router.patch("/metadata", response_model=JobSummary)
async def update_metadata(
    job_id: str,
    request: MetadataUpdateRequest,
    review: ReviewService = Depends(get_review_service),
):
    fields = request.model_dump(exclude={"reviewer"}, exclude_none=True)
    with pipeline_errors():
        return to_summary(review.update_metadata(job_id, request.reviewer, **fields))
