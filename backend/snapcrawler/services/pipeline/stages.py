"""
Stage domain logic.

A stage takes one job in its precondition status and returns the next
version of that job. It never writes to the store; PipelineStageRunner owns
selection, retry accounting and the single write per item. Stages signal
trouble by raising:

- TransientExternalError / MalformedResponseError: try again next run
- NonRetriableStageError: the job can never pass this stage
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from snapcrawler.core import NonRetriableStageError, TransientExternalError, get_logger
from snapcrawler.models.content import ClipSegment, ContentMetadata, EditPlan
from snapcrawler.models.job import JobRecord
from snapcrawler.models.status import JobStatus
from snapcrawler.services.infrastructure.clients import (
    BlobStorage,
    TranscriptionClient,
    VideoEditor,
    VideoSourceClient,
)
from snapcrawler.services.infrastructure.llm import LlmOrchestrator
from snapcrawler.services.infrastructure.parsing import normalize_edit_plan

from .quality import QualityRouter, QualityScoreCalculator

logger = get_logger(__name__, component="pipeline_stages")

DEFAULT_EXTERNAL_TIMEOUT_SECONDS = 900.0
METADATA_TRANSCRIPT_CHARS = 4_000

DEFAULT_CLIP_START_MS = 30_000
DEFAULT_CLIP_DURATION_MS = 60_000
MIN_CLIP_DURATION_MS = 30_000
MAX_CLIP_DURATION_MS = 180_000

SOURCE_LABELS = {"ko": "출처", "en": "Source", "ja": "出典"}


def format_timestamp(ms: int) -> str:
    seconds = ms // 1000
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


def format_timestamped_transcript(job: JobRecord) -> str:
    """`[HH:MM:SS - HH:MM:SS] text` per segment, or the plain transcript when untimed."""
    if job.transcript_segments:
        return "\n".join(
            f"[{format_timestamp(segment.start_ms)} - {format_timestamp(segment.end_ms)}] {segment.text.strip()}"
            for segment in job.transcript_segments
        )
    return (job.transcript or "").strip()


def source_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def with_source_attribution(metadata: ContentMetadata, job: JobRecord) -> ContentMetadata:
    label = SOURCE_LABELS.get(job.language, SOURCE_LABELS["en"])
    channel = job.source_channel_title or job.source_channel_id or "unknown"
    attribution = f"{label}: {channel} ({source_url(job.source_video_id)})"
    description = f"{metadata.description}\n\n{attribution}" if metadata.description else attribution
    return metadata.model_copy(update={"description": description})


def default_clip_range(job: JobRecord) -> Optional[Tuple[int, int]]:
    """
    Clip bounds used when the model proposes no clips.

    The best highlight segment, stretched or cut to 30 s .. 3 min, when there
    is one; otherwise one minute starting at 0:30, or the whole video when it
    is too short for that.
    """
    duration = max((segment.end_ms for segment in job.transcript_segments), default=None)

    if job.segments:
        best = job.segments[0]
        length = min(max(best.duration_ms, MIN_CLIP_DURATION_MS), MAX_CLIP_DURATION_MS)
        start = best.start_time_ms
        end = start + length
        if duration is not None:
            end = min(end, duration)
        if end > start:
            return start, end

    start, end = DEFAULT_CLIP_START_MS, DEFAULT_CLIP_START_MS + DEFAULT_CLIP_DURATION_MS
    if duration is None:
        return start, end
    if duration <= 0:
        return None
    if duration < end:
        if duration <= DEFAULT_CLIP_DURATION_MS:
            return 0, duration
        return duration - DEFAULT_CLIP_DURATION_MS, duration
    return start, end


class PipelineStage(ABC):
    """One step of the pipeline, keyed by the status it consumes."""

    name: str
    precondition: JobStatus

    def __init__(self, external_timeout_seconds: float = DEFAULT_EXTERNAL_TIMEOUT_SECONDS):
        self.external_timeout_seconds = external_timeout_seconds

    @abstractmethod
    async def execute(self, job: JobRecord) -> JobRecord:
        pass

    async def call_external(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking collaborator call in a worker thread under the stage deadline."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self.external_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise TransientExternalError(
                f"{self.name}: {operation} timed out after {self.external_timeout_seconds}s"
            ) from exc

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.precondition.value})"


class CrawlStage(PipelineStage):
    name = "crawl"
    precondition = JobStatus.PENDING

    def __init__(self, video_source: VideoSourceClient, blob_storage: BlobStorage, **kwargs):
        super().__init__(**kwargs)
        self.video_source = video_source
        self.blob_storage = blob_storage

    async def execute(self, job: JobRecord) -> JobRecord:
        data = await self.call_external("download", self.video_source.download, job.source_video_id)
        if not data:
            raise NonRetriableStageError(f"Source video {job.source_video_id} downloaded empty")
        key = f"raw/{job.id}/{job.source_video_id}.mp4"
        stored_key = await self.call_external("upload", self.blob_storage.put, key, data, "video/mp4")
        logger.info("Source video stored", extra={"key": stored_key, "bytes": len(data)})
        return job.transition(JobStatus.CRAWLED, raw_video_key=stored_key)


class TranscribeStage(PipelineStage):
    name = "transcribe"
    precondition = JobStatus.CRAWLED

    def __init__(self, transcription: TranscriptionClient, **kwargs):
        super().__init__(**kwargs)
        self.transcription = transcription

    async def execute(self, job: JobRecord) -> JobRecord:
        if not job.raw_video_key:
            raise NonRetriableStageError("No raw video to transcribe")
        transcript = await self.call_external(
            "transcribe", self.transcription.transcribe, job.raw_video_key, job.language
        )
        if not transcript.text.strip():
            raise NonRetriableStageError("Transcription produced no speech")
        logger.info(
            "Transcript ready",
            extra={
                "chars": len(transcript.text),
                "segment_count": len(transcript.segments),
                "duration_ms": transcript.duration_ms,
            },
        )
        return job.transition(
            JobStatus.TRANSCRIBED,
            transcript=transcript.text,
            transcript_segments=transcript.segments,
            stt_provider=transcript.provider or self.transcription.provider_name,
        )


class AnalyzeStage(PipelineStage):
    """Highlights, metadata and quiz. A quiz failure keeps the job in TRANSCRIBED."""

    name = "analyze"
    precondition = JobStatus.TRANSCRIBED

    def __init__(self, llm: LlmOrchestrator, **kwargs):
        super().__init__(**kwargs)
        self.llm = llm

    async def execute(self, job: JobRecord) -> JobRecord:
        transcript = format_timestamped_transcript(job)
        if not transcript:
            raise NonRetriableStageError("Job has no transcript to analyze")

        segments = await self.llm.extract_key_segments(transcript)
        metadata = await self.llm.generate_metadata(self._metadata_content(job), job.language)
        quiz = await self.llm.generate_quiz(
            metadata.title, metadata.description, job.language, metadata.difficulty
        )
        return job.transition(
            JobStatus.ANALYZED,
            segments=segments,
            generated_metadata=with_source_attribution(metadata, job),
            quiz=quiz,
            llm_provider=self.llm.provider_name,
            llm_model=self.llm.model_name,
        )

    @staticmethod
    def _metadata_content(job: JobRecord) -> str:
        parts = []
        if job.source_title:
            parts.append(f"Original title: {job.source_title}")
        parts.append(f"Transcript:\n{(job.transcript or '')[:METADATA_TRANSCRIPT_CHARS]}")
        return "\n\n".join(parts)


class EditStage(PipelineStage):
    name = "edit"
    precondition = JobStatus.ANALYZED

    def __init__(self, llm: LlmOrchestrator, editor: VideoEditor, **kwargs):
        super().__init__(**kwargs)
        self.llm = llm
        self.editor = editor

    async def execute(self, job: JobRecord) -> JobRecord:
        if not job.raw_video_key:
            raise NonRetriableStageError("No raw video to edit")

        plan = await self.llm.generate_edit_plan(format_timestamped_transcript(job), job.review_note)
        if plan.is_empty:
            plan = self._fallback_plan(job)

        rendered = await self.call_external("render", self.editor.render, job.id, job.raw_video_key, plan)
        return job.transition(
            JobStatus.EDITED,
            edit_plan=plan,
            edited_video_key=rendered.video_key,
            thumbnail_key=rendered.thumbnail_key,
        )

    @staticmethod
    def _fallback_plan(job: JobRecord) -> EditPlan:
        bounds = default_clip_range(job)
        if bounds is None:
            raise NonRetriableStageError("Edit plan is empty and the video has no usable range")
        start, end = bounds
        logger.warning("Edit plan empty, using default clip range", extra={"start_ms": start, "end_ms": end})
        title = job.generated_metadata.title if job.generated_metadata else ""
        return normalize_edit_plan(
            [ClipSegment(order_index=0, start_time_ms=start, end_time_ms=end, title=title)],
            editing_strategy="default_range",
        )


class ReviewStage(PipelineStage):
    """Scores the edited clip and routes it to human review or rejection."""

    name = "review"
    precondition = JobStatus.EDITED

    def __init__(self, calculator: QualityScoreCalculator, router: QualityRouter, **kwargs):
        super().__init__(**kwargs)
        self.calculator = calculator
        self.router = router

    async def execute(self, job: JobRecord) -> JobRecord:
        breakdown = self.calculator.calculate(job)
        decision = self.router.route(breakdown.total)
        logger.info(
            "Quality routed",
            extra={
                "quality_score": breakdown.total,
                "routed_to": decision.status.value,
                "priority": decision.priority.value if decision.priority else None,
            },
        )
        if decision.status == JobStatus.PENDING_APPROVAL:
            return job.transition(
                JobStatus.PENDING_APPROVAL,
                quality_score=breakdown.total,
                review_priority=decision.priority,
            )
        return job.transition(
            JobStatus.REJECTED,
            quality_score=breakdown.total,
            rejection_reason=f"Quality score {breakdown.total} below minimum {self.router.min_score}",
        )


class ReworkStage(PipelineStage):
    """Sends a NEEDS_EDIT job back to ANALYZED for another edit, a bounded number of times."""

    name = "rework"
    precondition = JobStatus.NEEDS_EDIT

    def __init__(self, max_edit_rounds: int, **kwargs):
        super().__init__(**kwargs)
        self.max_edit_rounds = max_edit_rounds

    async def execute(self, job: JobRecord) -> JobRecord:
        rounds = job.edit_rounds + 1
        if rounds > self.max_edit_rounds:
            raise NonRetriableStageError(f"Edit rounds exhausted ({self.max_edit_rounds})")
        return job.transition(
            JobStatus.ANALYZED,
            edit_rounds=rounds,
            edit_plan=None,
            edited_video_key=None,
            thumbnail_key=None,
            quality_score=None,
        )


STAGE_ORDER: List[str] = ["crawl", "transcribe", "analyze", "rework", "edit", "review"]


def stages_by_name(stages: List[PipelineStage]) -> Dict[str, PipelineStage]:
    return {stage.name: stage for stage in stages}
