"""
Core utilities: logging, exceptions and environment helpers.
"""

from .exceptions import (
    SnapCrawlerError,
    PipelineError,
    InfrastructureError,
    ConfigurationError,
    AuthorizationError,
    TransientExternalError,
    QuotaExceededError,
    MalformedResponseError,
    NonRetriableStageError,
    IllegalTransitionError,
    JobNotFoundError,
    DuplicateJobError,
    ConcurrentUpdateError,
)
from .logging import (
    setup_logging,
    get_logger,
    set_run_context,
    set_job_id,
    clear_context,
    current_context,
    LogTimer,
    StructuredFormatter,
    DevelopmentFormatter,
)
from .runtime import (
    parse_bool_env,
    env_int,
    env_float,
    assert_directory_writable,
)

__all__ = [
    "SnapCrawlerError",
    "PipelineError",
    "InfrastructureError",
    "ConfigurationError",
    "AuthorizationError",
    "TransientExternalError",
    "QuotaExceededError",
    "MalformedResponseError",
    "NonRetriableStageError",
    "IllegalTransitionError",
    "JobNotFoundError",
    "DuplicateJobError",
    "ConcurrentUpdateError",
    "setup_logging",
    "get_logger",
    "set_run_context",
    "set_job_id",
    "clear_context",
    "current_context",
    "LogTimer",
    "StructuredFormatter",
    "DevelopmentFormatter",
    "parse_bool_env",
    "env_int",
    "env_float",
    "assert_directory_writable",
]
