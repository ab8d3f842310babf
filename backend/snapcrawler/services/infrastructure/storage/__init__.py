"""
Job persistence
"""

from .job_store import JobStore, FileJobStore

__all__ = ["JobStore", "FileJobStore"]
