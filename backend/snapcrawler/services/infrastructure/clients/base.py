"""
Interfaces of the external systems the pipeline depends on.

Implementations live outside this package (video platform API, speech-to-text,
object storage, the render farm). All calls are blocking; the pipeline runs
them in worker threads with a deadline, so implementations should raise
TransientExternalError for anything worth retrying and NonRetriableStageError
for inputs that will never work.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from snapcrawler.models.content import (
    ContentLanguage,
    EditPlan,
    RenderedClip,
    Transcript,
    VideoCandidate,
)


class GenerativeTextClient(ABC):
    """Text-in, text-out access to a hosted model."""

    provider_name: str = "unknown"
    model_name: str = "unknown"

    @abstractmethod
    def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        response_format: Optional[str] = None,
    ) -> str:
        """Return the raw text of one completion. response_format="json" asks for a bare JSON reply."""
        pass

    def close(self) -> None:
        """Release connections held by the client."""
        return None


class VideoSourceClient(ABC):
    """Video platform: search for candidates and download the source file."""

    @abstractmethod
    def search(
        self,
        query: str,
        language: ContentLanguage,
        max_results: int,
    ) -> List[VideoCandidate]:
        pass

    @abstractmethod
    def download(self, video_id: str) -> bytes:
        pass


class TranscriptionClient(ABC):
    provider_name: str = "unknown"

    @abstractmethod
    def transcribe(self, video_key: str, language: Optional[str] = None) -> Transcript:
        pass


class BlobStorage(ABC):
    """Object storage addressed by string keys."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store data and return the key it is reachable under."""
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class VideoEditor(ABC):
    """Cuts the source video according to an edit plan."""

    @abstractmethod
    def render(self, job_id: str, source_key: str, plan: EditPlan) -> RenderedClip:
        pass
