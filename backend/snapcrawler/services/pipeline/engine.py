"""
Wiring of stages, runner, discovery and review into one pipeline object.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from snapcrawler.config import Settings
from snapcrawler.core import get_logger
from snapcrawler.models.content import Category, ContentLanguage, SearchContext
from snapcrawler.models.status import JobStatus
from snapcrawler.services.infrastructure.clients import (
    BlobStorage,
    TranscriptionClient,
    VideoEditor,
    VideoSourceClient,
)
from snapcrawler.services.infrastructure.llm import LlmOrchestrator
from snapcrawler.services.infrastructure.storage import JobStore

from .discovery import CandidateDiscovery, DiscoveryReport
from .quality import QualityRouter, QualityScoreCalculator
from .runner import PipelineStageRunner, StageRunReport
from .stages import (
    STAGE_ORDER,
    AnalyzeStage,
    CrawlStage,
    EditStage,
    PipelineStage,
    ReviewStage,
    ReworkStage,
    TranscribeStage,
    stages_by_name,
)

logger = get_logger(__name__, component="pipeline")

RECENTLY_PUBLISHED_LIMIT = 10


@dataclass
class PipelineCollaborators:
    """External systems the stages talk to."""
    video_source: VideoSourceClient
    transcription: TranscriptionClient
    blob_storage: BlobStorage
    video_editor: VideoEditor


class ClipPipeline:
    def __init__(
        self,
        settings: Settings,
        store: JobStore,
        llm: LlmOrchestrator,
        collaborators: PipelineCollaborators,
    ):
        self.settings = settings
        self.store = store
        self.llm = llm
        self.collaborators = collaborators

        timeout = {"external_timeout_seconds": settings.external_timeout_seconds}
        self.router = QualityRouter(settings.quality_min_score, settings.quality_high_priority_score)
        self.stages: Dict[str, PipelineStage] = stages_by_name([
            CrawlStage(collaborators.video_source, collaborators.blob_storage, **timeout),
            TranscribeStage(collaborators.transcription, **timeout),
            AnalyzeStage(llm, **timeout),
            ReworkStage(settings.max_edit_rounds, **timeout),
            EditStage(llm, collaborators.video_editor, **timeout),
            ReviewStage(QualityScoreCalculator(), self.router, **timeout),
        ])
        self.runner = PipelineStageRunner(
            store,
            max_retries=settings.max_retries,
            worker_count=settings.worker_count,
        )
        self.discovery = CandidateDiscovery(
            store,
            llm,
            collaborators.video_source,
            max_queries=settings.discovery_max_queries,
            results_per_query=settings.discovery_results_per_query,
        )

    async def run_stage(self, name: str) -> StageRunReport:
        if name not in self.stages:
            raise KeyError(f"Unknown stage '{name}'. Available: {STAGE_ORDER}")
        return await self.runner.run(self.stages[name])

    async def run_all_stages(self) -> List[StageRunReport]:
        """One pass over every stage in pipeline order."""
        return [await self.run_stage(name) for name in STAGE_ORDER]

    async def discover(self, context: Optional[SearchContext] = None) -> DiscoveryReport:
        return await self.discovery.discover(context or self.build_search_context())

    def build_search_context(self) -> SearchContext:
        """Steer discovery toward categories the published catalogue lacks."""
        published = self.store.list_jobs([JobStatus.PUBLISHED, JobStatus.APPROVED])
        covered = {job.generated_metadata.category for job in published if job.generated_metadata}
        recent = sorted(published, key=lambda job: job.updated_at, reverse=True)[:RECENTLY_PUBLISHED_LIMIT]
        return SearchContext(
            app_categories=[category.value for category in Category if category != Category.OTHER],
            underrepresented_categories=[
                category.value
                for category in Category
                if category.is_educational and category not in covered
            ],
            recently_published=[job.generated_metadata.title for job in recent if job.generated_metadata],
            target_languages=[ContentLanguage(code) for code in self.settings.target_languages],
        )
