"""
Tests for PipelineStageRunner: retry accounting, isolation and halting
"""

import asyncio

import pytest

from snapcrawler.core import (
    AuthorizationError,
    MalformedResponseError,
    NonRetriableStageError,
    QuotaExceededError,
    TransientExternalError,
)
from snapcrawler.models import JobStatus
from snapcrawler.services.pipeline import (
    AnalyzeStage,
    ItemOutcome,
    PipelineStage,
    PipelineStageRunner,
)


class ScriptedStage(PipelineStage):
    """PENDING -> CRAWLED, raising whatever is scripted for a source video id."""

    name = "crawl"
    precondition = JobStatus.PENDING

    def __init__(self, failures=None, delay=0.0):
        super().__init__()
        self.failures = failures or {}
        self.delay = delay
        self.seen = []
        self.active = 0
        self.max_active = 0

    async def execute(self, job):
        self.seen.append(job.source_video_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            failure = self.failures.get(job.source_video_id)
            if failure is not None:
                raise failure
            return job.transition(JobStatus.CRAWLED, raw_video_key=f"raw/{job.source_video_id}.mp4")
        finally:
            self.active -= 1


@pytest.fixture
def pending_jobs(job_store, make_job):
    def _create(*sources):
        return [job_store.create(make_job(JobStatus.PENDING, source_video_id=source)) for source in sources]

    return _create


class TestSuccessPath:
    @pytest.mark.asyncio
    async def test_advances_every_eligible_job(self, job_store, pending_jobs):
        jobs = pending_jobs("a", "b", "c")

        report = await PipelineStageRunner(job_store).run(ScriptedStage())

        assert report.selected == 3
        assert report.succeeded == 3
        for job in jobs:
            stored = job_store.get(job.id)
            assert stored.status == JobStatus.CRAWLED
            assert stored.version == 1

    @pytest.mark.asyncio
    async def test_success_resets_retry_count(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]
        job_store.save(job.evolve(retry_count=2))

        await PipelineStageRunner(job_store).run(ScriptedStage())

        assert job_store.get(job.id).retry_count == 0

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, job_store, pending_jobs):
        pending_jobs("a")
        runner = PipelineStageRunner(job_store)

        await runner.run(ScriptedStage())
        report = await runner.run(ScriptedStage())

        assert report.selected == 0
        assert report.outcomes == {}

    @pytest.mark.asyncio
    async def test_worker_pool_is_bounded(self, job_store, pending_jobs):
        pending_jobs(*[f"v{i}" for i in range(6)])
        stage = ScriptedStage(delay=0.01)

        await PipelineStageRunner(job_store, worker_count=2).run(stage)

        assert stage.max_active <= 2
        assert len(stage.seen) == 6

    @pytest.mark.asyncio
    async def test_batch_limit(self, job_store, pending_jobs):
        pending_jobs("a", "b", "c")

        report = await PipelineStageRunner(job_store, batch_limit=2).run(ScriptedStage())

        assert report.selected == 2
        assert len(job_store.find_by_status(JobStatus.PENDING)) == 1

    def test_worker_count_validated(self, job_store):
        with pytest.raises(ValueError):
            PipelineStageRunner(job_store, worker_count=0)


class TestRetryAccounting:
    @pytest.mark.asyncio
    async def test_transient_failure_keeps_status(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]

        report = await PipelineStageRunner(job_store).run(
            ScriptedStage({"a": TransientExternalError("503")})
        )

        stored = job_store.get(job.id)
        assert report.outcomes[job.id] == ItemOutcome.RETRIED
        assert stored.status == JobStatus.PENDING
        assert stored.retry_count == 1
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_fails_after_max_retries_plus_one(self, job_store, pending_jobs):
        """max_retries=3 allows three retries: the fourth failure is final"""
        job = pending_jobs("a")[0]
        runner = PipelineStageRunner(job_store, max_retries=3)
        stage = ScriptedStage({"a": TransientExternalError("503")})

        for expected_count in (1, 2, 3):
            await runner.run(stage)
            stored = job_store.get(job.id)
            assert stored.status == JobStatus.PENDING
            assert stored.retry_count == expected_count

        report = await runner.run(stage)

        stored = job_store.get(job.id)
        assert report.outcomes[job.id] == ItemOutcome.FAILED
        assert stored.status == JobStatus.FAILED
        assert stored.retry_count == 4
        assert "503" in stored.error_message
        assert len(stage.seen) == 4

        # a FAILED job is never picked up again
        await runner.run(stage)
        assert len(stage.seen) == 4

    @pytest.mark.asyncio
    async def test_malformed_response_is_transient(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]

        await PipelineStageRunner(job_store).run(ScriptedStage({"a": MalformedResponseError("bad")}))

        assert job_store.get(job.id).retry_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_transient(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]

        report = await PipelineStageRunner(job_store).run(ScriptedStage({"a": KeyError("surprise")}))

        assert report.outcomes[job.id] == ItemOutcome.RETRIED

    @pytest.mark.asyncio
    async def test_non_retriable_fails_immediately(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]

        report = await PipelineStageRunner(job_store).run(
            ScriptedStage({"a": NonRetriableStageError("video removed")})
        )

        stored = job_store.get(job.id)
        assert report.failed == 1
        assert stored.status == JobStatus.FAILED
        assert stored.error_message == "video removed"


class TestIsolation:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_touch_others(self, job_store, pending_jobs):
        good, bad = pending_jobs("good", "bad")

        report = await PipelineStageRunner(job_store).run(
            ScriptedStage({"bad": NonRetriableStageError("nope")})
        )

        assert job_store.get(good.id).status == JobStatus.CRAWLED
        assert job_store.get(bad.id).status == JobStatus.FAILED
        assert report.succeeded == 1
        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_job_changed_underneath_is_skipped(self, job_store, pending_jobs):
        job = pending_jobs("a")[0]

        class RacingStage(ScriptedStage):
            async def execute(self, current):
                job_store.save(current.evolve(review_note="touched elsewhere"))
                return await super().execute(current)

        report = await PipelineStageRunner(job_store).run(RacingStage())

        stored = job_store.get(job.id)
        assert report.outcomes[job.id] == ItemOutcome.SKIPPED
        assert stored.status == JobStatus.PENDING
        assert stored.review_note == "touched elsewhere"


class TestHalting:
    @pytest.mark.asyncio
    async def test_quota_stops_new_items(self, job_store, pending_jobs):
        jobs = pending_jobs("a", "b", "c")
        stage = ScriptedStage({"a": QuotaExceededError("429")})

        report = await PipelineStageRunner(job_store, worker_count=1).run(stage)

        assert report.halted
        assert stage.seen == ["a"]
        assert report.outcomes[jobs[0].id] == ItemOutcome.RETRIED
        assert report.outcomes[jobs[1].id] == ItemOutcome.NOT_STARTED
        assert report.skipped == 2
        assert job_store.get(jobs[0].id).retry_count == 1
        assert job_store.get(jobs[1].id).retry_count == 0

    @pytest.mark.asyncio
    async def test_authorization_aborts_run(self, job_store, pending_jobs):
        jobs = pending_jobs("a", "b")

        with pytest.raises(AuthorizationError):
            await PipelineStageRunner(job_store, worker_count=1).run(
                ScriptedStage({"a": AuthorizationError("403")})
            )

        for job in jobs:
            stored = job_store.get(job.id)
            assert stored.status == JobStatus.PENDING
            assert stored.retry_count == 0


class TestAnalyzeStageThroughRunner:
    @pytest.mark.asyncio
    async def test_quiz_failure_keeps_job_transcribed(self, job_store, make_job, make_orchestrator):
        """Segments and metadata succeed, the quiz does not: nothing is persisted but the retry"""
        job = job_store.create(make_job(JobStatus.TRANSCRIBED))
        llm, _ = make_orchestrator(
            '[{"startTimeMs": 0, "endTimeMs": 40000, "title": "Hook"}]',
            '{"title": "T", "description": "D", "category": "PROGRAMMING", "difficulty": "BEGINNER"}',
            "not json",
        )

        report = await PipelineStageRunner(job_store).run(AnalyzeStage(llm))

        stored = job_store.get(job.id)
        assert report.retried == 1
        assert stored.status == JobStatus.TRANSCRIBED
        assert stored.retry_count == 1
        assert stored.segments == []
        assert stored.generated_metadata is None
