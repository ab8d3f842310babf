"""
External collaborator interfaces
"""

from .base import (
    GenerativeTextClient,
    VideoSourceClient,
    TranscriptionClient,
    BlobStorage,
    VideoEditor,
)

__all__ = [
    "GenerativeTextClient",
    "VideoSourceClient",
    "TranscriptionClient",
    "BlobStorage",
    "VideoEditor",
]
