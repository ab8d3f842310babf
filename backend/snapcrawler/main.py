"""
SnapCrawler Backend API
FastAPI application exposing job inspection, human review and manual
pipeline triggers. The lifespan wires the pipeline and runs the scheduler.
"""

import os
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request

from .config import API_DESCRIPTION, API_TITLE, API_VERSION, Settings
from .core import clear_context, get_logger, parse_bool_env, set_run_context, setup_logging
from .routes import jobs_router, pipeline_router, review_router
from .services.infrastructure.clients import GenerativeTextClient
from .services.infrastructure.orchestration import StartupManager
from .services.pipeline import PipelineCollaborators

log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE")
use_json_logs = parse_bool_env(os.getenv("JSON_LOGS"))

setup_logging(
    level=log_level,
    log_file=Path(log_file) if log_file else None,
    use_json=use_json_logs,
)

logger = get_logger(__name__, service="api")


def create_app(
    settings: Optional[Settings] = None,
    collaborators: Optional[PipelineCollaborators] = None,
    client_factory: Optional[Callable[[], GenerativeTextClient]] = None,
) -> FastAPI:
    """Build the application. Settings are loaded from the environment at startup when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = StartupManager(app, settings, collaborators, client_factory)
        await manager.run_startup()
        try:
            yield
        finally:
            await manager.run_shutdown()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_request_correlation(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        set_run_context(request_id, None)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"status_code": response.status_code},
            )
            return response
        finally:
            clear_context()

    @app.get("/health")
    async def health():
        return {"status": "ok", "pipeline": app.state.pipeline is not None}

    app.include_router(jobs_router)
    app.include_router(review_router)
    app.include_router(pipeline_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "snapcrawler.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
