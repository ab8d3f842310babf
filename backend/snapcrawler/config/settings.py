"""
Runtime settings read from the environment.

All knobs are read once by load_settings(); anything missing or malformed
raises ConfigurationError so the process fails at startup instead of on the
first job.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from ..core.exceptions import ConfigurationError
from ..core.runtime import env_float, env_int, parse_bool_env
from .models import DEFAULT_MODEL

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_JOB_DATA_DIR = BACKEND_DIR / "job_data"

SUPPORTED_LANGUAGES = ("ko", "en", "ja")


@dataclass(frozen=True)
class Settings:
    # LLM access
    gemini_api_key: Optional[str] = None
    use_vertex_ai: bool = False
    gcp_project_id: Optional[str] = None
    gcp_location: str = "us-central1"
    llm_model: str = DEFAULT_MODEL
    llm_timeout_seconds: float = 120.0

    # Stage execution
    external_timeout_seconds: float = 900.0
    max_retries: int = 3
    max_edit_rounds: int = 2
    worker_count: int = 5

    # Review routing
    quality_min_score: int = 70
    quality_high_priority_score: int = 85

    # Discovery
    discovery_max_queries: int = 5
    discovery_results_per_query: int = 10
    default_language: str = "ko"
    target_languages: Tuple[str, ...] = SUPPORTED_LANGUAGES

    # Storage / scheduling
    job_data_dir: Path = field(default=DEFAULT_JOB_DATA_DIR)
    scheduler_enabled: bool = False
    scheduler_interval_seconds: float = 300.0

    def validate(self) -> "Settings":
        if not 0 <= self.quality_min_score <= 100:
            raise ConfigurationError("QUALITY_MIN_SCORE must be within 0..100")
        if not self.quality_min_score <= self.quality_high_priority_score <= 100:
            raise ConfigurationError(
                "QUALITY_HIGH_PRIORITY_SCORE must be within QUALITY_MIN_SCORE..100"
            )
        if self.worker_count < 1:
            raise ConfigurationError("PIPELINE_WORKERS must be at least 1")
        if self.default_language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(
                f"DEFAULT_LANGUAGE must be one of {SUPPORTED_LANGUAGES}, got {self.default_language!r}"
            )
        unknown = [lang for lang in self.target_languages if lang not in SUPPORTED_LANGUAGES]
        if unknown or not self.target_languages:
            raise ConfigurationError(f"TARGET_LANGUAGES has unsupported entries: {unknown}")
        return self

    def require_llm_credentials(self) -> None:
        """Fail fast when the generative-text provider cannot be reached at all."""
        if self.use_vertex_ai:
            if not self.gcp_project_id:
                raise ConfigurationError("GCP_PROJECT_ID is required when USE_VERTEX_AI is enabled")
        elif not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")


def _languages_from_env() -> Tuple[str, ...]:
    raw = os.getenv("TARGET_LANGUAGES")
    if not raw:
        return SUPPORTED_LANGUAGES
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    """Build validated settings from environment variables."""
    job_dir = os.getenv("JOB_DATA_DIR")
    settings = Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        use_vertex_ai=parse_bool_env(os.getenv("USE_VERTEX_AI")),
        gcp_project_id=os.getenv("GCP_PROJECT_ID") or None,
        gcp_location=os.getenv("GCP_LOCATION", "us-central1"),
        llm_model=os.getenv("LLM_MODEL", DEFAULT_MODEL),
        llm_timeout_seconds=env_float("LLM_TIMEOUT_SECONDS", 120.0, minimum=1.0),
        external_timeout_seconds=env_float("EXTERNAL_TIMEOUT_SECONDS", 900.0, minimum=1.0),
        max_retries=env_int("PIPELINE_MAX_RETRIES", 3),
        max_edit_rounds=env_int("PIPELINE_MAX_EDIT_ROUNDS", 2),
        worker_count=env_int("PIPELINE_WORKERS", 5, minimum=1),
        quality_min_score=env_int("QUALITY_MIN_SCORE", 70),
        quality_high_priority_score=env_int("QUALITY_HIGH_PRIORITY_SCORE", 85),
        discovery_max_queries=env_int("DISCOVERY_MAX_QUERIES", 5, minimum=1),
        discovery_results_per_query=env_int("DISCOVERY_RESULTS_PER_QUERY", 10, minimum=1),
        default_language=os.getenv("DEFAULT_LANGUAGE", "ko").strip().lower(),
        target_languages=_languages_from_env(),
        job_data_dir=Path(job_dir) if job_dir else DEFAULT_JOB_DATA_DIR,
        scheduler_enabled=parse_bool_env(os.getenv("SCHEDULER_ENABLED")),
        scheduler_interval_seconds=env_float("SCHEDULER_INTERVAL_SECONDS", 300.0, minimum=1.0),
    )
    return settings.validate()
