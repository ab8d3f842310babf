"""
Candidate discovery: turns the app's current content needs into PENDING jobs.

queries (LLM) -> search (video source) -> dedupe -> pre-screen (LLM) -> jobs
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List

from snapcrawler.core import AuthorizationError, DuplicateJobError, LogTimer, get_logger
from snapcrawler.models.content import SearchContext, SearchQuery, VideoCandidate, VideoEvaluation
from snapcrawler.models.job import JobRecord
from snapcrawler.models.status import JobStatus
from snapcrawler.services.infrastructure.clients import VideoSourceClient
from snapcrawler.services.infrastructure.llm import LlmOrchestrator
from snapcrawler.services.infrastructure.storage import JobStore

logger = get_logger(__name__, component="discovery")

DEFAULT_MAX_QUERIES = 5
DEFAULT_RESULTS_PER_QUERY = 10
DEFAULT_SEARCH_TIMEOUT_SECONDS = 60.0


@dataclass
class DiscoveryReport:
    queries: List[SearchQuery] = field(default_factory=list)
    candidates_found: int = 0
    candidates_evaluated: int = 0
    created: List[JobRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, int]:
        return {
            "queries": len(self.queries),
            "candidates_found": self.candidates_found,
            "candidates_evaluated": self.candidates_evaluated,
            "jobs_created": len(self.created),
        }


class CandidateDiscovery:
    def __init__(
        self,
        store: JobStore,
        llm: LlmOrchestrator,
        video_source: VideoSourceClient,
        max_queries: int = DEFAULT_MAX_QUERIES,
        results_per_query: int = DEFAULT_RESULTS_PER_QUERY,
        search_timeout_seconds: float = DEFAULT_SEARCH_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.llm = llm
        self.video_source = video_source
        self.max_queries = max_queries
        self.results_per_query = results_per_query
        self.search_timeout_seconds = search_timeout_seconds

    async def discover(self, context: SearchContext) -> DiscoveryReport:
        report = DiscoveryReport()
        with LogTimer(logger, "candidate discovery"):
            queries = await self.llm.generate_search_queries(context)
            report.queries = sorted(queries, key=lambda query: query.priority, reverse=True)[: self.max_queries]

            candidates = self._unseen(await self._search_all(report.queries))
            report.candidates_found = len(candidates)
            if not candidates:
                logger.info("No new candidates found")
                return report

            evaluations = await self.llm.evaluate_videos(candidates)
            report.candidates_evaluated = len(evaluations)
            report.created = self._create_jobs(candidates, evaluations)

        logger.info("Discovery finished", extra=report.to_dict())
        return report

    async def _search_all(self, queries: List[SearchQuery]) -> List[VideoCandidate]:
        found: List[VideoCandidate] = []
        for query in queries:
            try:
                results = await asyncio.wait_for(
                    asyncio.to_thread(
                        self.video_source.search,
                        query.query,
                        query.language,
                        self.results_per_query,
                    ),
                    timeout=self.search_timeout_seconds,
                )
            except AuthorizationError:
                raise
            except Exception as exc:
                logger.warning(
                    "Search query failed, continuing with the rest",
                    extra={"query": query.query, "error": str(exc) or type(exc).__name__},
                )
                continue
            logger.debug("Search query done", extra={"query": query.query, "results": len(results)})
            found.extend(results)
        return found

    def _unseen(self, candidates: List[VideoCandidate]) -> List[VideoCandidate]:
        """Drop repeats within this run and videos the store already knows (failed jobs excepted)."""
        unique: Dict[str, VideoCandidate] = {}
        for candidate in candidates:
            if candidate.video_id in unique:
                continue
            known = [
                job for job in self.store.find_by_source_id(candidate.video_id)
                if job.status != JobStatus.FAILED
            ]
            if known:
                continue
            unique[candidate.video_id] = candidate
        return list(unique.values())

    def _create_jobs(
        self,
        candidates: List[VideoCandidate],
        evaluations: List[VideoEvaluation],
    ) -> List[JobRecord]:
        by_id = {candidate.video_id: candidate for candidate in candidates}
        selected = sorted(
            (evaluation for evaluation in evaluations if evaluation.recommendation.is_positive),
            key=lambda evaluation: evaluation.predicted_quality,
            reverse=True,
        )

        created: List[JobRecord] = []
        for evaluation in selected:
            candidate = by_id.get(evaluation.video_id)
            if candidate is None:
                continue
            job = JobRecord(
                source_video_id=candidate.video_id,
                source_channel_id=candidate.channel_id or None,
                source_channel_title=candidate.channel_title or None,
                source_title=candidate.title,
                language=candidate.language.value,
                prescreen_score=evaluation.predicted_quality,
            )
            try:
                created.append(self.store.create(job))
            except DuplicateJobError as exc:
                logger.info("Candidate already has an active job", extra={"error": str(exc)})
        return created
