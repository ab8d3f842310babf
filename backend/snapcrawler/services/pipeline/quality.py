"""
Quality scoring and review routing.

The composite score is a weighted mean of four 0-100 sub-scores. A sub-score
that cannot be computed (no transcript yet, no rendered clip, ...) counts as
the neutral midpoint instead of zero, so missing data never sinks a job on
its own. Routing from score to status/priority is a pure function.
"""

from dataclasses import dataclass
from typing import Optional

from snapcrawler.models.content import NEUTRAL_SCORE, Category
from snapcrawler.models.job import JobRecord
from snapcrawler.models.status import JobStatus, ReviewPriority

DEFAULT_MIN_SCORE = 70
DEFAULT_HIGH_PRIORITY_SCORE = 85

MIN_SHORT_DURATION_MS = 30_000
MAX_SHORT_DURATION_MS = 180_000
EDUCATIONAL_CATEGORY_BONUS = 15


@dataclass(frozen=True)
class QualityWeights:
    content_relevance: float = 0.25
    audio_clarity: float = 0.25
    visual_quality: float = 0.25
    educational_value: float = 0.25

    @property
    def total(self) -> float:
        return self.content_relevance + self.audio_clarity + self.visual_quality + self.educational_value


@dataclass(frozen=True)
class QualityBreakdown:
    content_relevance: Optional[int]
    audio_clarity: Optional[int]
    visual_quality: Optional[int]
    educational_value: Optional[int]
    total: int


@dataclass(frozen=True)
class RoutingDecision:
    status: JobStatus
    priority: Optional[ReviewPriority]
    score: int


def clamp_score(value: float) -> int:
    return max(0, min(100, int(round(value))))


def route_by_score(
    score: int,
    min_score: int = DEFAULT_MIN_SCORE,
    high_priority_score: int = DEFAULT_HIGH_PRIORITY_SCORE,
) -> RoutingDecision:
    """
    >= high_priority_score -> PENDING_APPROVAL / HIGH
    >= min_score           -> PENDING_APPROVAL / NORMAL
    below                  -> REJECTED, no priority
    """
    if not 0 <= score <= 100:
        raise ValueError(f"quality score must be within 0..100, got {score}")
    if score >= high_priority_score:
        return RoutingDecision(JobStatus.PENDING_APPROVAL, ReviewPriority.HIGH, score)
    if score >= min_score:
        return RoutingDecision(JobStatus.PENDING_APPROVAL, ReviewPriority.NORMAL, score)
    return RoutingDecision(JobStatus.REJECTED, None, score)


class QualityRouter:
    """Routing thresholds bound once from settings."""

    def __init__(
        self,
        min_score: int = DEFAULT_MIN_SCORE,
        high_priority_score: int = DEFAULT_HIGH_PRIORITY_SCORE,
    ):
        if not 0 <= min_score <= high_priority_score <= 100:
            raise ValueError("thresholds must satisfy 0 <= min_score <= high_priority_score <= 100")
        self.min_score = min_score
        self.high_priority_score = high_priority_score

    def route(self, score: int) -> RoutingDecision:
        return route_by_score(score, self.min_score, self.high_priority_score)


class QualityScoreCalculator:
    def __init__(self, weights: Optional[QualityWeights] = None):
        self.weights = weights or QualityWeights()

    def calculate(self, job: JobRecord) -> QualityBreakdown:
        content = self.content_relevance(job)
        audio = self.audio_clarity(job)
        visual = self.visual_quality(job)
        educational = self.educational_value(job)

        weights = self.weights
        weighted = (
            weights.content_relevance * self._or_neutral(content)
            + weights.audio_clarity * self._or_neutral(audio)
            + weights.visual_quality * self._or_neutral(visual)
            + weights.educational_value * self._or_neutral(educational)
        )
        total = clamp_score(weighted / weights.total) if weights.total > 0 else NEUTRAL_SCORE
        return QualityBreakdown(content, audio, visual, educational, total)

    @staticmethod
    def _or_neutral(value: Optional[int]) -> int:
        return NEUTRAL_SCORE if value is None else value

    @staticmethod
    def content_relevance(job: JobRecord) -> Optional[int]:
        """Completeness of the generated metadata."""
        metadata = job.generated_metadata
        if metadata is None:
            return None
        score = 0
        if metadata.title.strip() and metadata.title != "Untitled":
            score += 25
        if len(metadata.description) >= 20:
            score += 25
        elif metadata.description:
            score += 10
        if len(metadata.tags) >= 3:
            score += 25
        elif metadata.tags:
            score += 10
        score += 25 if metadata.category != Category.OTHER else 10
        return score

    @staticmethod
    def audio_clarity(job: JobRecord) -> Optional[int]:
        """Transcript density as a proxy for clear, usable speech."""
        if not job.transcript:
            return None
        length = len(job.transcript.strip())
        if length < 100:
            return 30
        if length < 500:
            return 60
        if length < 5_000:
            return 100
        if length < 20_000:
            return 80
        return 60

    @staticmethod
    def visual_quality(job: JobRecord) -> Optional[int]:
        if not job.edited_video_key:
            return None
        score = 60
        if job.thumbnail_key:
            score += 20
        plan = job.edit_plan
        if plan and MIN_SHORT_DURATION_MS <= plan.total_duration_ms <= MAX_SHORT_DURATION_MS:
            score += 20
        return score

    @staticmethod
    def educational_value(job: JobRecord) -> Optional[int]:
        """Pre-screening prediction, nudged up for educational categories."""
        metadata = job.generated_metadata
        if job.prescreen_score is not None:
            base = job.prescreen_score
        elif metadata is not None:
            base = NEUTRAL_SCORE
        else:
            return None
        if metadata is not None and metadata.category.is_educational:
            base += EDUCATIONAL_CATEGORY_BONUS
        return min(100, base)
