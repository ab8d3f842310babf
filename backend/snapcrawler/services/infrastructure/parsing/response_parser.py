"""
Typed decoding of extracted model output.

Every parser takes the raw response, runs it through extract_response_text()
and validates it with pydantic. Decode failures never escape except for the
quiz: list-shaped results are validated record by record and keep the valid
records, object-shaped results degrade to a neutral default, so a bad
generation costs quality, not the job.
"""

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from snapcrawler.core import MalformedResponseError, get_logger
from snapcrawler.models.content import (
    CamelModel,
    Category,
    ClipSegment,
    ContentMetadata,
    Difficulty,
    EditPlan,
    Quiz,
    Recommendation,
    SearchQuery,
    Segment,
    VideoCandidate,
    VideoEvaluation,
)
from .extraction import extract_response_text

logger = get_logger(__name__, component="response_parser")

EMPTY_PLAN_STRATEGY = "none"
DEFAULT_STRATEGY = "highlight_compilation"
DEFAULT_TRANSITION = "hard_cut"
UNPARSEABLE_EVALUATION_REASON = "Evaluation could not be parsed; neutral score assigned"
MISSING_EVALUATION_REASON = "Model returned no evaluation for this candidate; neutral score assigned"

# Validators may raise TypeError or ValueError that pydantic does not wrap
DECODE_ERRORS = (ValidationError, TypeError, ValueError)

_RECORD_LIST = TypeAdapter(List[Any])

RecordT = TypeVar("RecordT", bound=CamelModel)


class _EditPlanPayload(CamelModel):
    clips: List[ClipSegment] = Field(default_factory=list)
    total_duration_ms: Optional[int] = None
    editing_strategy: Optional[str] = None
    transition_style: Optional[str] = None


class _EvaluationPayload(CamelModel):
    index: int
    relevance_score: int = Field(ge=0, le=100)
    educational_value: int = Field(ge=0, le=100)
    short_form_suitability: int = Field(default=50, ge=0, le=100)
    predicted_quality: int = Field(ge=0, le=100)
    recommendation: Recommendation
    reasoning: str = ""

    @field_validator("recommendation", mode="before")
    @classmethod
    def _normalize_recommendation(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


def _preview(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _decode_records(text: str, model: Type[RecordT], label: str) -> List[RecordT]:
    """Valid records of a JSON array; invalid records are skipped, a non-array gives []."""
    try:
        items = _RECORD_LIST.validate_json(text)
    except ValidationError as exc:
        logger.warning(
            f"{label} response could not be decoded, using empty list",
            extra={"error_count": exc.error_count(), "response_preview": _preview(text)},
        )
        return []

    records: List[RecordT] = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except DECODE_ERRORS as exc:
            logger.warning(
                f"Skipping invalid {label.lower()} record",
                extra={"record": item, "error": str(exc)},
            )
    return records


def parse_segments(raw: str) -> List[Segment]:
    """Highlight segments; records that do not validate are dropped."""
    return _decode_records(extract_response_text(raw), Segment, "Segment")


def parse_search_queries(raw: str) -> List[SearchQuery]:
    return _decode_records(extract_response_text(raw), SearchQuery, "Search query")


def default_metadata() -> ContentMetadata:
    return ContentMetadata(
        title="Untitled",
        description="",
        tags=[],
        category=Category.PROGRAMMING,
        difficulty=Difficulty.BEGINNER,
    )


def parse_metadata(raw: str) -> ContentMetadata:
    text = extract_response_text(raw)
    try:
        return ContentMetadata.model_validate_json(text)
    except DECODE_ERRORS as exc:
        logger.warning(
            "Metadata response could not be decoded, using defaults",
            extra={"error": str(exc), "response_preview": _preview(text)},
        )
        return default_metadata()


def empty_edit_plan() -> EditPlan:
    return EditPlan(
        clips=[],
        total_duration_ms=0,
        editing_strategy=EMPTY_PLAN_STRATEGY,
        transition_style=DEFAULT_TRANSITION,
    )


def normalize_edit_plan(
    clips: Sequence[ClipSegment],
    reported_total_ms: Optional[int] = None,
    editing_strategy: Optional[str] = None,
    transition_style: Optional[str] = None,
) -> EditPlan:
    """Sort clips by order_index, drop empty ones and make the total add up."""
    usable = [clip for clip in clips if clip.end_time_ms > clip.start_time_ms]
    if len(usable) != len(clips):
        logger.warning(
            "Dropped clips with non-positive duration",
            extra={"dropped": len(clips) - len(usable)},
        )
    ordered = sorted(usable, key=lambda clip: clip.order_index)
    total = sum(clip.duration_ms for clip in ordered)
    if reported_total_ms is not None and reported_total_ms != total:
        logger.info(
            "Edit plan duration recomputed from clips",
            extra={"reported_ms": reported_total_ms, "computed_ms": total},
        )
    return EditPlan(
        clips=ordered,
        total_duration_ms=total,
        editing_strategy=editing_strategy or DEFAULT_STRATEGY,
        transition_style=transition_style or DEFAULT_TRANSITION,
    )


def parse_edit_plan(raw: str) -> EditPlan:
    text = extract_response_text(raw)
    try:
        payload = _EditPlanPayload.model_validate_json(text)
    except DECODE_ERRORS as exc:
        logger.warning(
            "Edit plan response could not be decoded, using empty plan",
            extra={"error": str(exc), "response_preview": _preview(text)},
        )
        return empty_edit_plan()
    return normalize_edit_plan(
        payload.clips,
        reported_total_ms=payload.total_duration_ms,
        editing_strategy=payload.editing_strategy,
        transition_style=payload.transition_style,
    )


def neutral_evaluations(candidates: Sequence[VideoCandidate], reasoning: str) -> List[VideoEvaluation]:
    return [VideoEvaluation.neutral(candidate.video_id, reasoning) for candidate in candidates]


def parse_evaluations(raw: str, candidates: Sequence[VideoCandidate]) -> List[VideoEvaluation]:
    """
    Evaluations for one batch, always exactly one per candidate, in candidate order.

    Records pointing outside the batch are dropped, the first record wins for
    a repeated index, and candidates the model skipped get a neutral MAYBE.
    """
    text = extract_response_text(raw)
    try:
        items = _RECORD_LIST.validate_json(text)
    except ValidationError as exc:
        logger.warning(
            "Evaluation response could not be decoded, all candidates set to MAYBE",
            extra={"candidates": len(candidates), "error_count": exc.error_count()},
        )
        return neutral_evaluations(candidates, UNPARSEABLE_EVALUATION_REASON)

    by_index: Dict[int, _EvaluationPayload] = {}
    for item in items:
        try:
            payload = _EvaluationPayload.model_validate(item)
        except DECODE_ERRORS:
            logger.debug("Skipping invalid evaluation record", extra={"record": item})
            continue
        if not 0 <= payload.index < len(candidates):
            logger.warning(
                "Evaluation index out of range",
                extra={"index": payload.index, "candidates": len(candidates)},
            )
            continue
        by_index.setdefault(payload.index, payload)

    evaluations: List[VideoEvaluation] = []
    for position, candidate in enumerate(candidates):
        payload = by_index.get(position)
        if payload is None:
            evaluations.append(VideoEvaluation.neutral(candidate.video_id, MISSING_EVALUATION_REASON))
            continue
        evaluations.append(
            VideoEvaluation(
                video_id=candidate.video_id,
                relevance_score=payload.relevance_score,
                educational_value=payload.educational_value,
                short_form_suitability=payload.short_form_suitability,
                predicted_quality=payload.predicted_quality,
                recommendation=payload.recommendation,
                reasoning=payload.reasoning,
            )
        )
    return evaluations


def parse_quiz(raw: str) -> Quiz:
    """Decode a quiz. There is no sensible default quiz, so failures raise."""
    text = extract_response_text(raw)
    try:
        return Quiz.model_validate_json(text)
    except DECODE_ERRORS as exc:
        raise MalformedResponseError(
            f"Quiz response is not a valid quiz: {exc}",
            raw_response=text,
        ) from exc
