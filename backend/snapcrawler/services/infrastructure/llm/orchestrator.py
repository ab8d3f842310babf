"""
LLM orchestration for the clip pipeline.

One orchestrator owns one GenerativeTextClient for its whole life
(open() .. close()). Every operation builds a deterministic prompt from its
inputs, sends it under the operation's call contract with a per-call
deadline, and decodes the answer through the typed response parsers.

The orchestrator never retries. A timeout or provider failure surfaces as
TransientExternalError and the stage runner decides what to do with the job.
"""

import asyncio
import json
import time
from typing import Callable, List, Optional, Sequence, Union

from snapcrawler.config import get_call_config
from snapcrawler.core import (
    AuthorizationError,
    InfrastructureError,
    QuotaExceededError,
    TransientExternalError,
    get_logger,
)
from snapcrawler.models.content import (
    Category,
    ContentLanguage,
    ContentMetadata,
    Difficulty,
    EditPlan,
    Quiz,
    SearchContext,
    SearchQuery,
    Segment,
    VideoCandidate,
    VideoEvaluation,
)
from snapcrawler.services.infrastructure.clients import GenerativeTextClient
from snapcrawler.services.infrastructure.parsing import (
    extract_response_text,
    parse_edit_plan,
    parse_evaluations,
    parse_metadata,
    parse_quiz,
    parse_search_queries,
    parse_segments,
)

from .prompts import (
    LANGUAGE_INSTRUCTIONS,
    NATIVE_LANGUAGE_NAMES,
    TITLE_EXAMPLES,
    format_prompt,
)

logger = get_logger(__name__, component="llm_orchestrator")

EVALUATION_BATCH_SIZE = 10
DESCRIPTION_PREVIEW_CHARS = 200
DEFAULT_CALL_TIMEOUT_SECONDS = 120.0

ClientFactory = Callable[[], GenerativeTextClient]


def _as_language(language: Union[str, ContentLanguage]) -> ContentLanguage:
    if isinstance(language, ContentLanguage):
        return language
    return ContentLanguage(str(language).strip().lower())


def _join(values: Sequence[str]) -> str:
    return ", ".join(values) if values else "none"


class LlmOrchestrator:
    """
    Typed LLM operations used by discovery and the analyze and edit stages.

    Usage:
        async with LlmOrchestrator(lambda: GeminiTextClient.from_settings(settings)) as llm:
            segments = await llm.extract_key_segments(transcript)
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS,
    ):
        self._client_factory = client_factory
        self.timeout_seconds = timeout_seconds
        self._client: Optional[GenerativeTextClient] = None

    # ------------------------------------------------------------------ lifecycle

    def open(self) -> "LlmOrchestrator":
        """Create the underlying client. Configuration problems raise here, at startup."""
        if self._client is None:
            self._client = self._client_factory()
            logger.info(
                "LLM orchestrator opened",
                extra={"provider": self._client.provider_name, "model": self._client.model_name},
            )
        return self

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()
            logger.info("LLM orchestrator closed")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def provider_name(self) -> Optional[str]:
        return self._client.provider_name if self._client else None

    @property
    def model_name(self) -> Optional[str]:
        return self._client.model_name if self._client else None

    async def __aenter__(self) -> "LlmOrchestrator":
        return self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------ dispatch

    async def _call(self, operation: str, prompt: str) -> str:
        if self._client is None:
            raise InfrastructureError("LLM orchestrator is not open")
        call_config = get_call_config(operation)
        started = time.monotonic()
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self._client.generate,
                    prompt,
                    call_config.max_output_tokens,
                    call_config.temperature,
                    call_config.response_format,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "LLM call timed out",
                extra={"operation": operation, "timeout_seconds": self.timeout_seconds},
            )
            raise TransientExternalError(
                f"{operation} timed out after {self.timeout_seconds}s"
            ) from exc

        logger.debug(
            "LLM call complete",
            extra={
                "operation": operation,
                "prompt_chars": len(prompt),
                "response_chars": len(raw or ""),
                "duration_seconds": round(time.monotonic() - started, 3),
            },
        )
        return raw or ""

    # ------------------------------------------------------------------ operations

    async def analyze(self, prompt: str) -> str:
        """Free-form prompt; returns the extracted answer text."""
        raw = await self._call("analyze", prompt)
        return extract_response_text(raw)

    async def extract_key_segments(self, transcript: str) -> List[Segment]:
        prompt = format_prompt("EXTRACT_KEY_SEGMENTS", transcript=transcript)
        segments = parse_segments(await self._call("extract_key_segments", prompt))
        logger.info("Key segments extracted", extra={"segment_count": len(segments)})
        return segments

    async def generate_edit_plan(self, transcript: str, review_note: Optional[str] = None) -> EditPlan:
        guidance = format_prompt("REVIEWER_GUIDANCE", note=review_note) if review_note else ""
        prompt = format_prompt("GENERATE_EDIT_PLAN", transcript=transcript, reviewer_guidance=guidance)
        plan = parse_edit_plan(await self._call("generate_edit_plan", prompt))
        logger.info(
            "Edit plan generated",
            extra={
                "clip_count": len(plan.clips),
                "total_duration_ms": plan.total_duration_ms,
                "strategy": plan.editing_strategy,
            },
        )
        return plan

    async def generate_metadata(
        self,
        content: str,
        language: Union[str, ContentLanguage] = ContentLanguage.KO,
    ) -> ContentMetadata:
        lang = _as_language(language)
        prompt = format_prompt(
            "GENERATE_METADATA",
            content=content,
            language_instruction=LANGUAGE_INSTRUCTIONS[lang.value],
            language_name=NATIVE_LANGUAGE_NAMES[lang.value],
            language_code=lang.value,
            title_example=TITLE_EXAMPLES[lang.value],
            categories="|".join(category.value for category in Category),
            difficulties="|".join(difficulty.value for difficulty in Difficulty),
        )
        return parse_metadata(await self._call("generate_metadata", prompt))

    async def generate_search_queries(self, context: SearchContext) -> List[SearchQuery]:
        languages = ", ".join(
            f"{lang.value} ({NATIVE_LANGUAGE_NAMES[lang.value]})" for lang in context.target_languages
        )
        prompt = format_prompt(
            "GENERATE_SEARCH_QUERIES",
            languages=languages,
            app_categories=_join(context.app_categories),
            popular_keywords=_join(context.popular_keywords),
            top_performing_tags=_join(context.top_performing_tags),
            seasonal_context=context.seasonal_context or "none",
            underrepresented_categories=_join(context.underrepresented_categories),
            recently_published=_join(context.recently_published),
        )
        queries = parse_search_queries(await self._call("generate_search_queries", prompt))
        logger.info("Search queries generated", extra={"query_count": len(queries)})
        return queries

    async def evaluate_videos(self, candidates: Sequence[VideoCandidate]) -> List[VideoEvaluation]:
        """
        Pre-screen candidates in batches of EVALUATION_BATCH_SIZE, one batch at a time.

        A batch that fails contributes no evaluations and the next batch is
        still sent. A quota error stops dispatch: later batches would only hit
        the same limit.
        """
        evaluations: List[VideoEvaluation] = []
        batches = [
            list(candidates[start:start + EVALUATION_BATCH_SIZE])
            for start in range(0, len(candidates), EVALUATION_BATCH_SIZE)
        ]
        for number, batch in enumerate(batches, start=1):
            prompt = format_prompt("EVALUATE_VIDEOS", videos_json=self._candidates_json(batch))
            try:
                raw = await self._call("evaluate_videos", prompt)
            except QuotaExceededError as exc:
                logger.warning(
                    "Quota exhausted, skipping remaining evaluation batches",
                    extra={"batch": number, "remaining_batches": len(batches) - number, "error": str(exc)},
                )
                break
            except AuthorizationError:
                raise
            except Exception as exc:
                logger.error(
                    "Evaluation batch failed, dropping it",
                    extra={"batch": number, "batch_size": len(batch), "error": str(exc)},
                )
                continue
            evaluations.extend(parse_evaluations(raw, batch))

        logger.info(
            "Candidate evaluation finished",
            extra={"candidates": len(candidates), "evaluated": len(evaluations), "batches": len(batches)},
        )
        return evaluations

    async def generate_quiz(
        self,
        title: str,
        description: str,
        language: Union[str, ContentLanguage] = ContentLanguage.KO,
        difficulty: Optional[Union[str, Difficulty]] = None,
    ) -> Quiz:
        """Raises MalformedResponseError when the answer is not a valid quiz."""
        lang = _as_language(language)
        level = difficulty.value if isinstance(difficulty, Difficulty) else (difficulty or Difficulty.BEGINNER.value)
        prompt = format_prompt(
            "GENERATE_QUIZ",
            title=title,
            description=description,
            difficulty=level,
            language_instruction=LANGUAGE_INSTRUCTIONS[lang.value],
        )
        return parse_quiz(await self._call("generate_quiz", prompt))

    @staticmethod
    def _candidates_json(batch: Sequence[VideoCandidate]) -> str:
        return json.dumps(
            [
                {
                    "index": index,
                    "title": candidate.title,
                    "description": (candidate.description or "")[:DESCRIPTION_PREVIEW_CHARS],
                    "channelTitle": candidate.channel_title or "",
                    "viewCount": candidate.view_count or 0,
                }
                for index, candidate in enumerate(batch)
            ],
            ensure_ascii=False,
        )
