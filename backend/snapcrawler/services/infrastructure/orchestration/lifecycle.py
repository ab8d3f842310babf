"""
Lifecycle management for the application.
Startup validates configuration and wires the pipeline; shutdown stops the
scheduler and closes the LLM client.
"""

import asyncio
from typing import Callable, Optional

from fastapi import FastAPI

from snapcrawler.config import Settings, load_settings
from snapcrawler.core import assert_directory_writable, get_logger
from snapcrawler.services.infrastructure.clients import GenerativeTextClient
from snapcrawler.services.infrastructure.llm import GeminiTextClient, LlmOrchestrator
from snapcrawler.services.infrastructure.storage import FileJobStore
from snapcrawler.services.pipeline import ClipPipeline, PipelineCollaborators, ReviewService

from .scheduler import PipelineScheduler

logger = get_logger(__name__, service="lifecycle")

ClientFactory = Callable[[], GenerativeTextClient]


class StartupManager:
    def __init__(
        self,
        app: FastAPI,
        settings: Optional[Settings] = None,
        collaborators: Optional[PipelineCollaborators] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.app = app
        self.settings = settings
        self.collaborators = collaborators
        self.client_factory = client_factory
        self.llm: Optional[LlmOrchestrator] = None

    async def run_startup(self) -> None:
        """Fail fast on configuration, then wire store, review and (optionally) the pipeline."""
        settings = (self.settings or load_settings()).validate()
        self.settings = settings
        assert_directory_writable(settings.job_data_dir)

        store = FileJobStore(settings.job_data_dir)
        self.app.state.settings = settings
        self.app.state.job_store = store
        self.app.state.review_service = ReviewService(store)
        self.app.state.pipeline = None
        self.app.state.scheduler = None
        self.app.state.scheduler_task = None

        if self.collaborators is None:
            logger.warning("No pipeline collaborators configured; serving review endpoints only")
            return

        factory = self.client_factory or (lambda: GeminiTextClient.from_settings(settings))
        self.llm = LlmOrchestrator(factory, timeout_seconds=settings.llm_timeout_seconds).open()
        pipeline = ClipPipeline(settings, store, self.llm, self.collaborators)
        self.app.state.pipeline = pipeline

        scheduler = PipelineScheduler(pipeline, settings.scheduler_interval_seconds)
        self.app.state.scheduler = scheduler
        if settings.scheduler_enabled:
            self.app.state.scheduler_task = asyncio.create_task(scheduler.run_periodic())

        logger.info(
            "Pipeline ready",
            extra={
                "llm_provider": self.llm.provider_name,
                "llm_model": self.llm.model_name,
                "scheduler_enabled": settings.scheduler_enabled,
                "workers": settings.worker_count,
            },
        )

    async def run_shutdown(self) -> None:
        """Stop background work gracefully."""
        task = getattr(self.app.state, "scheduler_task", None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self.app.state.scheduler_task = None

        if self.llm is not None:
            self.llm.close()
            self.llm = None
        logger.info("Shutdown complete")
