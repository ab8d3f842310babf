"""
Core Exceptions
Standardized exception taxonomy for the clip pipeline.

The stage runner decides what happens to a job from the class of the
exception a stage raises:

- TransientExternalError (and QuotaExceededError): retry_count + 1, status kept
- MalformedResponseError: treated like a transient stage failure
- NonRetriableStageError: job goes straight to FAILED
- AuthorizationError / ConfigurationError: fatal, never per-item
"""


class SnapCrawlerError(Exception):
    """Base exception for all application errors."""
    pass


class PipelineError(SnapCrawlerError):
    """Base exception for processing pipeline errors."""
    pass


class InfrastructureError(SnapCrawlerError):
    """Base exception for infrastructure errors (LLM, Storage, etc)."""
    pass


class ConfigurationError(SnapCrawlerError):
    """Missing or invalid configuration detected at startup."""
    pass


class AuthorizationError(InfrastructureError):
    """Credentials were rejected by an external provider."""
    pass


class TransientExternalError(InfrastructureError):
    """Network failure, timeout or provider 5xx. Safe to retry later."""
    pass


class QuotaExceededError(TransientExternalError):
    """Provider rate limit hit. Retry later, but stop dispatching in this run."""
    pass


class MalformedResponseError(InfrastructureError):
    """Model output could not be decoded into the expected shape."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class NonRetriableStageError(PipelineError):
    """The job cannot make progress no matter how often it is retried."""
    pass


class IllegalTransitionError(PipelineError):
    """A status change outside the allowed transition table was requested."""
    pass


class JobNotFoundError(PipelineError):
    pass


class DuplicateJobError(PipelineError):
    """An active job already exists for the same source video."""
    pass


class ConcurrentUpdateError(PipelineError):
    """The stored job changed since it was read (version mismatch)."""
    pass
