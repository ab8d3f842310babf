from typing import Dict, List, Optional

import pytest

from snapcrawler.models import (
    Category,
    ContentMetadata,
    Difficulty,
    EditPlan,
    JobRecord,
    JobStatus,
    RenderedClip,
    ReviewPriority,
    Transcript,
    TranscriptSegment,
    VideoCandidate,
)
from snapcrawler.services.infrastructure.clients import (
    BlobStorage,
    GenerativeTextClient,
    TranscriptionClient,
    VideoEditor,
    VideoSourceClient,
)
from snapcrawler.services.infrastructure.llm import LlmOrchestrator
from snapcrawler.services.infrastructure.storage import FileJobStore
from snapcrawler.services.pipeline import PipelineCollaborators


@pytest.fixture(autouse=True)
def mock_cloud_env(monkeypatch, tmp_path):
    """Keep tests away from real credentials and the real job directory"""
    monkeypatch.setenv("GEMINI_API_KEY", "mock-key")
    monkeypatch.setenv("JOB_DATA_DIR", str(tmp_path / "env_jobs"))
    for name in ("USE_VERTEX_AI", "GCP_PROJECT_ID", "SCHEDULER_ENABLED", "PIPELINE_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)


# === Fakes for external collaborators ===

class FakeTextClient(GenerativeTextClient):
    """Replays scripted responses; an Exception entry is raised instead of returned."""

    provider_name = "fake"
    model_name = "fake-model"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.calls: List[Dict[str, object]] = []
        self.closed = False

    def generate(self, prompt: str, max_tokens: int, temperature: float, response_format=None) -> str:
        self.prompts.append(prompt)
        self.calls.append(
            {"max_tokens": max_tokens, "temperature": temperature, "response_format": response_format}
        )
        if not self.responses:
            raise AssertionError("Unexpected LLM call")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class FakeVideoSource(VideoSourceClient):
    def __init__(self, results: Optional[Dict[str, object]] = None, payload: bytes = b"video-bytes"):
        self.results = results or {}
        self.payload = payload
        self.searched: List[str] = []
        self.downloaded: List[str] = []

    def search(self, query, language, max_results):
        self.searched.append(query)
        result = self.results.get(query, [])
        if isinstance(result, BaseException):
            raise result
        return list(result)[:max_results]

    def download(self, video_id):
        self.downloaded.append(video_id)
        if isinstance(self.payload, BaseException):
            raise self.payload
        return self.payload


class FakeTranscription(TranscriptionClient):
    provider_name = "fake-stt"

    def __init__(self, transcript: Optional[Transcript] = None):
        self.transcript = transcript or Transcript(
            text="Recursion is a function calling itself until a base case stops it.",
            segments=[
                TranscriptSegment(start_ms=0, end_ms=40_000, text="Recursion is a function calling itself"),
                TranscriptSegment(start_ms=40_000, end_ms=120_000, text="until a base case stops it."),
            ],
        )

    def transcribe(self, video_key, language=None):
        if isinstance(self.transcript, BaseException):
            raise self.transcript
        return self.transcript


class InMemoryBlobStorage(BlobStorage):
    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def put(self, key, data, content_type="application/octet-stream"):
        self.objects[key] = data
        return key

    def get(self, key):
        return self.objects[key]

    def delete(self, key):
        self.objects.pop(key, None)


class FakeEditor(VideoEditor):
    def __init__(self):
        self.plans: List[EditPlan] = []

    def render(self, job_id, source_key, plan):
        self.plans.append(plan)
        return RenderedClip(video_key=f"edited/{job_id}.mp4", thumbnail_key=f"thumbs/{job_id}.jpg")


# === Fixtures ===

@pytest.fixture
def job_store(tmp_path):
    return FileJobStore(tmp_path / "job_data")


@pytest.fixture
def make_job():
    """Build a valid JobRecord in any status (not persisted)"""

    def _make(status: JobStatus = JobStatus.PENDING, **fields) -> JobRecord:
        data = {
            "source_video_id": fields.pop("source_video_id", "vid-1"),
            "source_title": "Recursion explained",
            "source_channel_title": "CS Channel",
            "status": status,
        }
        if status not in (JobStatus.PENDING,):
            data["raw_video_key"] = "raw/vid-1.mp4"
        if status in (JobStatus.TRANSCRIBED, JobStatus.ANALYZED, JobStatus.EDITED,
                      JobStatus.PENDING_APPROVAL, JobStatus.APPROVED, JobStatus.NEEDS_EDIT):
            data["transcript"] = "Recursion is a function calling itself until a base case stops it."
            data["transcript_segments"] = [
                TranscriptSegment(start_ms=0, end_ms=40_000, text="Recursion is a function calling itself"),
                TranscriptSegment(start_ms=40_000, end_ms=120_000, text="until a base case stops it."),
            ]
        if status in (JobStatus.ANALYZED, JobStatus.EDITED, JobStatus.PENDING_APPROVAL,
                      JobStatus.APPROVED, JobStatus.NEEDS_EDIT):
            data["generated_metadata"] = ContentMetadata(
                title="Recursion in 60 seconds",
                description="How a function can call itself safely.",
                tags=["recursion", "programming", "cs"],
                category=Category.PROGRAMMING,
                difficulty=Difficulty.BEGINNER,
            )
        if status == JobStatus.PENDING_APPROVAL:
            data["review_priority"] = ReviewPriority.NORMAL
            data["quality_score"] = 75
        if status == JobStatus.FAILED:
            data["error_message"] = "boom"
        data.update(fields)
        return JobRecord(**data)

    return _make


@pytest.fixture
def make_orchestrator():
    """Open an orchestrator over a FakeTextClient with scripted responses"""

    def _make(*responses, timeout_seconds: float = 5.0):
        client = FakeTextClient(responses)
        orchestrator = LlmOrchestrator(lambda: client, timeout_seconds=timeout_seconds).open()
        return orchestrator, client

    return _make


@pytest.fixture
def collaborators():
    return PipelineCollaborators(
        video_source=FakeVideoSource(),
        transcription=FakeTranscription(),
        blob_storage=InMemoryBlobStorage(),
        video_editor=FakeEditor(),
    )


@pytest.fixture
def candidate_factory():
    def _make(count: int, prefix: str = "vid"):
        return [
            VideoCandidate(video_id=f"{prefix}-{i}", title=f"Video {i}", channel_title="Channel")
            for i in range(count)
        ]

    return _make
