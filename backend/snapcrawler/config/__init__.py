"""
Application configuration and settings
"""

from dotenv import load_dotenv

load_dotenv()

from .models import (  # noqa: E402
    DEFAULT_MODEL,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    LLM_OPERATIONS,
    LlmCallConfig,
    ResponseShape,
    get_call_config,
)
from .settings import (  # noqa: E402
    Settings,
    SUPPORTED_LANGUAGES,
    load_settings,
)

API_TITLE = "SnapCrawler API"
API_DESCRIPTION = "Short-form clip pipeline: ingestion, stage runs and human review"
API_VERSION = "0.1.0"

__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_MAX_OUTPUT_TOKENS",
    "DEFAULT_TEMPERATURE",
    "LLM_OPERATIONS",
    "LlmCallConfig",
    "ResponseShape",
    "get_call_config",
    "Settings",
    "SUPPORTED_LANGUAGES",
    "load_settings",
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
]
