"""
Routes module - contains all API route handlers
"""

from .jobs import router as jobs_router
from .review import router as review_router
from .pipeline import router as pipeline_router

__all__ = [
    "jobs_router",
    "review_router",
    "pipeline_router",
]
