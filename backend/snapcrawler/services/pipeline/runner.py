"""
Stage runner: applies one stage to every eligible job with a bounded worker pool.

Per item the runner re-reads the job, re-checks the stage precondition, runs
the stage and writes the outcome exactly once:

- success: advanced job, retry_count reset to 0
- transient failure: retry_count + 1, status unchanged, FAILED once the
  count exceeds max_retries
- non-retriable failure: FAILED with the error message

One item's failure never touches another item. A quota error stops new items
from starting in this run; an authorization error aborts the run.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from snapcrawler.core import (
    AuthorizationError,
    ConcurrentUpdateError,
    MalformedResponseError,
    NonRetriableStageError,
    QuotaExceededError,
    TransientExternalError,
    get_logger,
    set_job_id,
    set_run_context,
)
from snapcrawler.models.job import JobRecord
from snapcrawler.models.status import JobStatus
from snapcrawler.services.infrastructure.storage import JobStore

from .stages import PipelineStage

logger = get_logger(__name__, component="stage_runner")

DEFAULT_MAX_RETRIES = 3
DEFAULT_WORKER_COUNT = 5


class ItemOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    RETRIED = "retried"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_STARTED = "not_started"


@dataclass
class StageRunReport:
    stage: str
    run_id: str
    selected: int = 0
    outcomes: Dict[str, ItemOutcome] = field(default_factory=dict)
    halted: bool = False

    def count(self, outcome: ItemOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value == outcome)

    @property
    def succeeded(self) -> int:
        return self.count(ItemOutcome.SUCCEEDED)

    @property
    def retried(self) -> int:
        return self.count(ItemOutcome.RETRIED)

    @property
    def failed(self) -> int:
        return self.count(ItemOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(ItemOutcome.SKIPPED) + self.count(ItemOutcome.NOT_STARTED)

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage": self.stage,
            "selected": self.selected,
            "succeeded": self.succeeded,
            "retried": self.retried,
            "failed": self.failed,
            "skipped": self.skipped,
            "halted": self.halted,
        }


class PipelineStageRunner:
    def __init__(
        self,
        store: JobStore,
        max_retries: int = DEFAULT_MAX_RETRIES,
        worker_count: int = DEFAULT_WORKER_COUNT,
        batch_limit: Optional[int] = None,
    ):
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self.store = store
        self.max_retries = max_retries
        self.worker_count = worker_count
        self.batch_limit = batch_limit

    async def run(self, stage: PipelineStage) -> StageRunReport:
        """Process every job currently in `stage.precondition`."""
        run_id = uuid.uuid4().hex[:12]
        set_run_context(run_id, stage.name)
        report = StageRunReport(stage=stage.name, run_id=run_id)
        try:
            jobs = self.store.find_by_status(stage.precondition, limit=self.batch_limit)
            report.selected = len(jobs)
            if not jobs:
                logger.debug("No eligible jobs")
                return report

            semaphore = asyncio.Semaphore(self.worker_count)
            halt = asyncio.Event()

            async def worker(job_id: str) -> ItemOutcome:
                async with semaphore:
                    if halt.is_set():
                        return ItemOutcome.NOT_STARTED
                    return await self._process(stage, job_id, halt)

            job_ids = [job.id for job in jobs]
            results = await asyncio.gather(*(worker(job_id) for job_id in job_ids), return_exceptions=True)

            fatal: Optional[BaseException] = None
            for job_id, result in zip(job_ids, results):
                if isinstance(result, ItemOutcome):
                    report.outcomes[job_id] = result
                    continue
                report.outcomes[job_id] = ItemOutcome.NOT_STARTED
                if isinstance(result, AuthorizationError):
                    fatal = fatal or result
                else:
                    logger.error(
                        "Worker crashed",
                        extra={"failed_job_id": job_id, "error": repr(result)},
                    )
            report.halted = halt.is_set()

            logger.info("Stage run finished", extra=report.to_dict())
            if fatal is not None:
                raise fatal
            return report
        finally:
            set_run_context(None, None)

    async def _process(self, stage: PipelineStage, job_id: str, halt: asyncio.Event) -> ItemOutcome:
        set_job_id(job_id)
        try:
            job = self.store.get(job_id)
            if job is None or job.status != stage.precondition:
                logger.info(
                    "Job no longer eligible, skipping",
                    extra={"status": job.status.value if job else None},
                )
                return ItemOutcome.SKIPPED

            try:
                advanced = await stage.execute(job)
            except AuthorizationError:
                halt.set()
                logger.critical("Provider rejected credentials, aborting stage run")
                raise
            except QuotaExceededError as exc:
                halt.set()
                logger.warning("Quota exhausted, halting further dispatch", extra={"error": str(exc)})
                return self._record_transient(job, exc)
            except (TransientExternalError, MalformedResponseError) as exc:
                return self._record_transient(job, exc)
            except NonRetriableStageError as exc:
                return self._record_failure(job, str(exc))
            except Exception as exc:
                logger.error("Unexpected stage error", extra={"error": str(exc)}, exc_info=True)
                return self._record_transient(job, exc)

            if advanced.status != JobStatus.FAILED:
                advanced = advanced.evolve(retry_count=0)
            if self._save(advanced) is None:
                return ItemOutcome.SKIPPED
            logger.info(
                "Job advanced",
                extra={"from_status": job.status.value, "to_status": advanced.status.value},
            )
            return ItemOutcome.FAILED if advanced.status == JobStatus.FAILED else ItemOutcome.SUCCEEDED
        finally:
            set_job_id(None)

    def _record_transient(self, job: JobRecord, exc: Exception) -> ItemOutcome:
        attempts = job.retry_count + 1
        if attempts > self.max_retries:
            message = f"Retries exhausted after {attempts} attempts: {exc}"
            if self._save(job.transition(JobStatus.FAILED, retry_count=attempts, error_message=message)) is None:
                return ItemOutcome.SKIPPED
            logger.error("Job failed permanently", extra={"retry_count": attempts, "error": str(exc)})
            return ItemOutcome.FAILED

        if self._save(job.evolve(retry_count=attempts)) is None:
            return ItemOutcome.SKIPPED
        logger.warning(
            "Transient stage failure, will retry",
            extra={"retry_count": attempts, "max_retries": self.max_retries, "error": str(exc)},
        )
        return ItemOutcome.RETRIED

    def _record_failure(self, job: JobRecord, message: str) -> ItemOutcome:
        if self._save(job.fail(message)) is None:
            return ItemOutcome.SKIPPED
        logger.error("Job failed", extra={"error": message})
        return ItemOutcome.FAILED

    def _save(self, job: JobRecord) -> Optional[JobRecord]:
        try:
            return self.store.save(job)
        except ConcurrentUpdateError as exc:
            logger.warning("Job changed underneath the stage, result discarded", extra={"error": str(exc)})
            return None


def summarize_reports(reports: List[StageRunReport]) -> Dict[str, Dict[str, object]]:
    return {report.stage: report.to_dict() for report in reports}
