"""
Gemini implementation of GenerativeTextClient.

Works against the public Gemini API (api key) or Vertex AI (project and
location). SDK errors are translated into the pipeline's error taxonomy so
callers never see google.genai exception types.
"""

from typing import Any, Dict, Optional

from google import genai
from google.genai import errors, types

from snapcrawler.config import Settings
from snapcrawler.core import (
    AuthorizationError,
    ConfigurationError,
    QuotaExceededError,
    TransientExternalError,
    get_logger,
)
from snapcrawler.services.infrastructure.clients import GenerativeTextClient

logger = get_logger(__name__, component="gemini_client")

AUTH_ERROR_CODES = (401, 403)
QUOTA_ERROR_CODE = 429


def translate_api_error(exc: errors.APIError) -> Exception:
    """Map an SDK error onto TransientExternalError / QuotaExceededError / AuthorizationError."""
    code = getattr(exc, "code", None)
    if code == QUOTA_ERROR_CODE:
        return QuotaExceededError(f"Gemini quota exhausted: {exc}")
    if code in AUTH_ERROR_CODES:
        return AuthorizationError(f"Gemini rejected credentials ({code}): {exc}")
    return TransientExternalError(f"Gemini request failed ({code}): {exc}")


class GeminiTextClient(GenerativeTextClient):
    """Blocking Gemini client; the orchestrator runs it in a worker thread."""

    provider_name = "gemini"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        use_vertex_ai: bool = False,
        project: Optional[str] = None,
        location: str = "us-central1",
    ):
        self.model_name = model
        self.use_vertex_ai = use_vertex_ai
        if use_vertex_ai:
            if not project:
                raise ConfigurationError("Vertex AI mode needs a GCP project id")
            self.provider_name = "vertex_ai"
            self._client = genai.Client(vertexai=True, project=project, location=location)
        else:
            if not api_key:
                raise ConfigurationError("Gemini API key is missing")
            self._client = genai.Client(api_key=api_key)
        logger.info(
            "Gemini client ready",
            extra={"model": model, "vertex_ai": use_vertex_ai},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiTextClient":
        settings.require_llm_credentials()
        return cls(
            model=settings.llm_model,
            api_key=settings.gemini_api_key,
            use_vertex_ai=settings.use_vertex_ai,
            project=settings.gcp_project_id,
            location=settings.gcp_location,
        )

    def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        response_format: Optional[str] = None,
    ) -> str:
        gen_config: Dict[str, Any] = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        if response_format == "json":
            gen_config["response_mime_type"] = "application/json"
        config = types.GenerateContentConfig(**gen_config)
        try:
            response = self._client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )
        except errors.APIError as exc:
            raise translate_api_error(exc) from exc
        except (ConnectionError, TimeoutError, OSError) as exc:
            raise TransientExternalError(f"Gemini request failed: {exc}") from exc

        self._log_usage(response)
        text = getattr(response, "text", None)
        if not text:
            raise TransientExternalError("Gemini returned an empty response")
        return text

    def _log_usage(self, response: Any) -> None:
        usage = getattr(response, "usage_metadata", None)
        if usage is None:
            return
        logger.debug(
            "Gemini usage",
            extra={
                "model": self.model_name,
                "input_tokens": getattr(usage, "prompt_token_count", 0) or 0,
                "output_tokens": getattr(usage, "candidates_token_count", 0) or 0,
            },
        )

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
