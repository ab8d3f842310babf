"""
Tests for the individual pipeline stages
"""

import json
import time

import pytest

from snapcrawler.core import NonRetriableStageError, TransientExternalError
from snapcrawler.models import (
    Category,
    ContentMetadata,
    Difficulty,
    JobStatus,
    ReviewPriority,
    Segment,
    Transcript,
    TranscriptSegment,
)
from snapcrawler.services.pipeline import (
    AnalyzeStage,
    CrawlStage,
    EditStage,
    QualityRouter,
    QualityScoreCalculator,
    ReviewStage,
    ReworkStage,
    STAGE_ORDER,
    TranscribeStage,
)
from snapcrawler.services.pipeline.stages import (
    default_clip_range,
    format_timestamp,
    format_timestamped_transcript,
    with_source_attribution,
)

from conftest import FakeEditor, FakeTranscription, FakeVideoSource, InMemoryBlobStorage

METADATA_JSON = json.dumps({
    "title": "재귀 60초",
    "description": "함수가 자기 자신을 호출하는 원리",
    "tags": ["재귀"],
    "category": "PROGRAMMING",
    "difficulty": "INTERMEDIATE",
})
QUIZ_JSON = json.dumps({
    "question": "재귀를 멈추는 것은?",
    "options": [{"text": "기저 조건", "isCorrect": True}, {"text": "반복문", "isCorrect": False}],
})


def segments_until(*ends_ms):
    start = 0
    segments = []
    for end in ends_ms:
        segments.append(TranscriptSegment(start_ms=start, end_ms=end, text=f"until {end}"))
        start = end
    return segments


class TestHelpers:
    def test_format_timestamp(self):
        assert format_timestamp(0) == "00:00:00"
        assert format_timestamp(3_723_999) == "01:02:03"

    def test_timestamped_transcript(self, make_job):
        job = make_job(JobStatus.TRANSCRIBED)

        text = format_timestamped_transcript(job)

        assert text.splitlines()[0] == "[00:00:00 - 00:00:40] Recursion is a function calling itself"
        assert text.splitlines()[1].startswith("[00:00:40 - 00:02:00]")

    def test_untimed_transcript_falls_back_to_text(self, make_job):
        job = make_job(JobStatus.TRANSCRIBED, transcript_segments=[], transcript="  plain text ")

        assert format_timestamped_transcript(job) == "plain text"

    @pytest.mark.parametrize(
        "language,label",
        [("ko", "출처"), ("en", "Source"), ("ja", "出典"), ("fr", "Source")],
    )
    def test_source_attribution(self, make_job, language, label):
        job = make_job(JobStatus.TRANSCRIBED, language=language, source_video_id="xyz")
        metadata = ContentMetadata(
            title="T", description="Body", category=Category.SCIENCE, difficulty=Difficulty.BEGINNER
        )

        attributed = with_source_attribution(metadata, job)

        assert attributed.description == (
            f"Body\n\n{label}: CS Channel (https://www.youtube.com/watch?v=xyz)"
        )
        assert metadata.description == "Body"


class TestDefaultClipRange:
    def test_best_segment_stretched_to_minimum(self, make_job):
        job = make_job(
            JobStatus.ANALYZED,
            segments=[Segment(start_time_ms=10_000, end_time_ms=20_000, title="short")],
        )

        assert default_clip_range(job) == (10_000, 40_000)

    def test_best_segment_capped_at_three_minutes(self, make_job):
        job = make_job(
            JobStatus.ANALYZED,
            transcript_segments=segments_until(600_000),
            segments=[Segment(start_time_ms=0, end_time_ms=400_000, title="long")],
        )

        assert default_clip_range(job) == (0, 180_000)

    def test_segment_clamped_to_video_end(self, make_job):
        job = make_job(
            JobStatus.ANALYZED,
            transcript_segments=segments_until(100_000),
            segments=[Segment(start_time_ms=90_000, end_time_ms=95_000, title="tail")],
        )

        assert default_clip_range(job) == (90_000, 100_000)

    def test_default_window(self, make_job):
        job = make_job(JobStatus.ANALYZED, transcript_segments=segments_until(300_000))

        assert default_clip_range(job) == (30_000, 90_000)

    def test_short_video_uses_whole_video(self, make_job):
        job = make_job(JobStatus.ANALYZED, transcript_segments=segments_until(45_000))

        assert default_clip_range(job) == (0, 45_000)

    def test_medium_video_uses_last_minute(self, make_job):
        job = make_job(JobStatus.ANALYZED, transcript_segments=segments_until(75_000))

        assert default_clip_range(job) == (15_000, 75_000)

    def test_untimed_video(self, make_job):
        job = make_job(JobStatus.ANALYZED, transcript_segments=[])

        assert default_clip_range(job) == (30_000, 90_000)


class TestCrawlStage:
    @pytest.mark.asyncio
    async def test_downloads_and_stores(self, make_job):
        storage = InMemoryBlobStorage()
        job = make_job(JobStatus.PENDING, source_video_id="abc")

        crawled = await CrawlStage(FakeVideoSource(), storage).execute(job)

        assert crawled.status == JobStatus.CRAWLED
        assert crawled.raw_video_key == f"raw/{job.id}/abc.mp4"
        assert storage.objects[crawled.raw_video_key] == b"video-bytes"

    @pytest.mark.asyncio
    async def test_empty_download_is_permanent(self, make_job):
        with pytest.raises(NonRetriableStageError):
            await CrawlStage(FakeVideoSource(payload=b""), InMemoryBlobStorage()).execute(make_job())

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, make_job):
        class SlowSource(FakeVideoSource):
            def download(self, video_id):
                time.sleep(0.5)
                return b"late"

        stage = CrawlStage(SlowSource(), InMemoryBlobStorage(), external_timeout_seconds=0.05)

        with pytest.raises(TransientExternalError, match="download timed out"):
            await stage.execute(make_job())


class TestTranscribeStage:
    @pytest.mark.asyncio
    async def test_stores_transcript(self, make_job):
        transcribed = await TranscribeStage(FakeTranscription()).execute(make_job(JobStatus.CRAWLED))

        assert transcribed.status == JobStatus.TRANSCRIBED
        assert transcribed.transcript.startswith("Recursion")
        assert len(transcribed.transcript_segments) == 2
        assert transcribed.stt_provider == "fake-stt"

    @pytest.mark.asyncio
    async def test_logs_spoken_duration(self, make_job, caplog):
        caplog.set_level("INFO", logger="snapcrawler.services.pipeline.stages")

        await TranscribeStage(FakeTranscription()).execute(make_job(JobStatus.CRAWLED))

        ready = [record for record in caplog.records if record.getMessage() == "Transcript ready"]
        assert ready[0].duration_ms == 120_000
        assert ready[0].segment_count == 2

    @pytest.mark.asyncio
    async def test_silent_video_is_permanent(self, make_job):
        stage = TranscribeStage(FakeTranscription(Transcript(text="   ")))

        with pytest.raises(NonRetriableStageError):
            await stage.execute(make_job(JobStatus.CRAWLED))


class TestAnalyzeStage:
    @pytest.mark.asyncio
    async def test_produces_segments_metadata_and_quiz(self, make_job, make_orchestrator):
        llm, client = make_orchestrator(
            json.dumps([{"startTimeMs": 0, "endTimeMs": 40000, "title": "Hook"}]),
            METADATA_JSON,
            QUIZ_JSON,
        )
        job = make_job(JobStatus.TRANSCRIBED)

        analyzed = await AnalyzeStage(llm).execute(job)

        assert analyzed.status == JobStatus.ANALYZED
        assert analyzed.segments[0].title == "Hook"
        assert analyzed.generated_metadata.title == "재귀 60초"
        assert "출처: CS Channel" in analyzed.generated_metadata.description
        assert analyzed.quiz.correct_count == 1
        assert analyzed.llm_provider == "fake"
        assert analyzed.llm_model == "fake-model"
        # the quiz sees the description without the attribution footer
        assert "출처" not in client.prompts[2]
        assert "INTERMEDIATE" in client.prompts[2]
        # segment extraction gets the timestamped transcript
        assert "[00:00:00 - 00:00:40]" in client.prompts[0]


class TestEditStage:
    @pytest.mark.asyncio
    async def test_renders_model_plan(self, make_job, make_orchestrator):
        editor = FakeEditor()
        llm, _ = make_orchestrator(json.dumps({
            "clips": [{"orderIndex": 0, "startTimeMs": 0, "endTimeMs": 45000}],
            "totalDurationMs": 45000,
        }))
        job = make_job(JobStatus.ANALYZED)

        edited = await EditStage(llm, editor).execute(job)

        assert edited.status == JobStatus.EDITED
        assert edited.edit_plan.total_duration_ms == 45_000
        assert edited.edited_video_key == f"edited/{job.id}.mp4"
        assert edited.thumbnail_key == f"thumbs/{job.id}.jpg"
        assert editor.plans == [edited.edit_plan]

    @pytest.mark.asyncio
    async def test_empty_plan_falls_back_to_default_range(self, make_job, make_orchestrator):
        editor = FakeEditor()
        llm, _ = make_orchestrator("I cannot make a plan for this video.")
        job = make_job(
            JobStatus.ANALYZED,
            segments=[Segment(start_time_ms=5_000, end_time_ms=65_000, title="Best")],
        )

        edited = await EditStage(llm, editor).execute(job)

        clip = edited.edit_plan.clips[0]
        assert (clip.start_time_ms, clip.end_time_ms) == (5_000, 65_000)
        assert clip.title == "Recursion in 60 seconds"
        assert edited.edit_plan.editing_strategy == "default_range"
        assert edited.edit_plan.total_duration_ms == 60_000

    @pytest.mark.asyncio
    async def test_reviewer_note_reaches_prompt(self, make_job, make_orchestrator):
        llm, client = make_orchestrator(json.dumps({
            "clips": [{"orderIndex": 0, "startTimeMs": 0, "endTimeMs": 45000}],
        }))
        job = make_job(JobStatus.ANALYZED, review_note="Start with the diagram")

        await EditStage(llm, FakeEditor()).execute(job)

        assert "Start with the diagram" in client.prompts[0]


class TestReviewStage:
    def stage(self):
        return ReviewStage(QualityScoreCalculator(), QualityRouter())

    def edited_job(self, make_job, **fields):
        return make_job(JobStatus.EDITED, edited_video_key="edited/a.mp4", thumbnail_key="thumbs/a.jpg", **fields)

    @pytest.mark.asyncio
    async def test_high_score_goes_to_review(self, make_job):
        reviewed = await self.stage().execute(self.edited_job(make_job, prescreen_score=90))

        assert reviewed.status == JobStatus.PENDING_APPROVAL
        assert reviewed.review_priority in (ReviewPriority.HIGH, ReviewPriority.NORMAL)
        assert reviewed.quality_score >= 70

    @pytest.mark.asyncio
    async def test_low_score_rejected(self, make_job):
        job = self.edited_job(
            make_job,
            transcript="too short",
            prescreen_score=0,
            generated_metadata=ContentMetadata(
                title="Untitled", description="", category=Category.OTHER, difficulty=Difficulty.BEGINNER
            ),
        )

        reviewed = await self.stage().execute(job)

        assert reviewed.status == JobStatus.REJECTED
        assert reviewed.review_priority is None
        assert reviewed.rejection_reason == f"Quality score {reviewed.quality_score} below minimum 70"


class TestReworkStage:
    @pytest.mark.asyncio
    async def test_sends_job_back_to_analyzed(self, make_job):
        job = make_job(
            JobStatus.NEEDS_EDIT,
            edited_video_key="edited/a.mp4",
            thumbnail_key="thumbs/a.jpg",
            quality_score=72,
            review_note="tighter cut",
        )

        reworked = await ReworkStage(max_edit_rounds=2).execute(job)

        assert reworked.status == JobStatus.ANALYZED
        assert reworked.edit_rounds == 1
        assert reworked.edited_video_key is None
        assert reworked.quality_score is None
        assert reworked.review_note == "tighter cut"

    @pytest.mark.asyncio
    async def test_rounds_exhausted(self, make_job):
        job = make_job(JobStatus.NEEDS_EDIT, edit_rounds=2)

        with pytest.raises(NonRetriableStageError):
            await ReworkStage(max_edit_rounds=2).execute(job)


def test_stage_order():
    assert STAGE_ORDER == ["crawl", "transcribe", "analyze", "rework", "edit", "review"]
