"""
Request-scoped access to services wired by the lifespan, plus error mapping.
"""

from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request

from ..core import (
    ConcurrentUpdateError,
    IllegalTransitionError,
    JobNotFoundError,
    PipelineError,
)
from ..models import JobRecord, JobSummary
from ..services.infrastructure.storage import JobStore
from ..services.pipeline import ClipPipeline, ReviewService


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_pipeline(request: Request) -> ClipPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline collaborators are not configured")
    return pipeline


@contextmanager
def pipeline_errors() -> Iterator[None]:
    """Translate domain errors raised inside a route into HTTP errors."""
    try:
        yield
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (IllegalTransitionError, ConcurrentUpdateError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except PipelineError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def to_summary(job: JobRecord) -> JobSummary:
    return JobSummary(
        id=job.id,
        source_video_id=job.source_video_id,
        source_title=job.source_title,
        status=job.status.value,
        quality_score=job.quality_score,
        review_priority=job.review_priority.value if job.review_priority else None,
        retry_count=job.retry_count,
        edit_rounds=job.edit_rounds,
        title=job.generated_metadata.title if job.generated_metadata else None,
        error_message=job.error_message,
        updated_at=job.updated_at,
    )
