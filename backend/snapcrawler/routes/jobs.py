"""
Job listing and inspection routes.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..models import DashboardStats, JobRecord, JobStatus, JobSummary
from ..services.infrastructure.storage import JobStore
from ..services.pipeline import ReviewService
from .dependencies import get_job_store, get_review_service, to_summary

router = APIRouter(tags=["jobs"])


@router.get("/jobs", response_model=List[JobSummary])
async def list_jobs(status: Optional[JobStatus] = None, store: JobStore = Depends(get_job_store)):
    """List jobs, optionally filtered by status"""
    jobs = store.list_jobs([status] if status else None)
    return [to_summary(job) for job in jobs]


@router.get("/jobs/{job_id}", response_model=JobRecord)
async def get_job(job_id: str, store: JobStore = Depends(get_job_store)):
    job = store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("/review-queue", response_model=List[JobSummary])
async def review_queue(limit: Optional[int] = None, review: ReviewService = Depends(get_review_service)):
    """Jobs waiting for a human decision, highest priority first"""
    return [to_summary(job) for job in review.review_queue(limit)]


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(review: ReviewService = Depends(get_review_service)):
    return review.dashboard()
