"""
Domain payloads produced and consumed by the pipeline.

JSON exchanged with the model uses camelCase keys (startTimeMs, orderIndex,
...), so every payload model carries camelCase aliases while Python code
uses snake_case attributes. Both spellings are accepted on input.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

NEUTRAL_SCORE = 50


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentLanguage(str, Enum):
    KO = "ko"
    EN = "en"
    JA = "ja"

    @property
    def display_name(self) -> str:
        return {"ko": "Korean", "en": "English", "ja": "Japanese"}[self.value]


class Category(str, Enum):
    LANGUAGE = "LANGUAGE"
    SCIENCE = "SCIENCE"
    HISTORY = "HISTORY"
    MATHEMATICS = "MATHEMATICS"
    ART = "ART"
    STARTUP = "STARTUP"
    MARKETING = "MARKETING"
    PROGRAMMING = "PROGRAMMING"
    DESIGN = "DESIGN"
    PRODUCTIVITY = "PRODUCTIVITY"
    PSYCHOLOGY = "PSYCHOLOGY"
    FINANCE = "FINANCE"
    HEALTH = "HEALTH"
    PARENTING = "PARENTING"
    COOKING = "COOKING"
    TRAVEL = "TRAVEL"
    HOBBY = "HOBBY"
    TREND = "TREND"
    FUN = "FUN"
    OTHER = "OTHER"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Category":
        """Case-insensitive lookup; anything unknown becomes OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.OTHER

    @property
    def is_educational(self) -> bool:
        return self in EDUCATIONAL_CATEGORIES


EDUCATIONAL_CATEGORIES = frozenset({
    Category.PROGRAMMING,
    Category.SCIENCE,
    Category.MATHEMATICS,
    Category.LANGUAGE,
    Category.HISTORY,
})


class Difficulty(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Recommendation(str, Enum):
    HIGHLY_RECOMMENDED = "HIGHLY_RECOMMENDED"
    RECOMMENDED = "RECOMMENDED"
    MAYBE = "MAYBE"
    SKIP = "SKIP"

    @property
    def is_positive(self) -> bool:
        return self in (Recommendation.HIGHLY_RECOMMENDED, Recommendation.RECOMMENDED)


def _string_items(value) -> List[str]:
    """Non-empty strings of a list value; anything that is not a list yields []."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


# --- transcript and analysis -------------------------------------------------

class TranscriptSegment(CamelModel):
    """One timed piece of speech-to-text output."""
    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    text: str


class Segment(CamelModel):
    """A highlight candidate inside the source video."""
    start_time_ms: int = Field(ge=0)
    end_time_ms: int = Field(ge=0)
    title: str
    description: str = ""
    keywords: List[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _string_keywords(cls, value):
        return _string_items(value)

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_time_ms - self.start_time_ms)


class ClipSegment(CamelModel):
    order_index: int = Field(ge=0)
    start_time_ms: int = Field(ge=0)
    end_time_ms: int = Field(ge=0)
    title: str = ""
    description: str = ""

    @property
    def duration_ms(self) -> int:
        return self.end_time_ms - self.start_time_ms


class EditPlan(CamelModel):
    """Ordered clip list the video editor renders into a single short."""
    clips: List[ClipSegment] = Field(default_factory=list)
    total_duration_ms: int = 0
    editing_strategy: str = "highlight_compilation"
    transition_style: str = "hard_cut"

    @property
    def is_empty(self) -> bool:
        return not self.clips


class ContentMetadata(CamelModel):
    title: str
    description: str
    tags: List[str] = Field(default_factory=list)
    category: Category
    difficulty: Difficulty

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value):
        if isinstance(value, Category):
            return value
        return Category.from_string(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _drop_empty_tags(cls, value):
        return _string_items(value)


class QuizOption(CamelModel):
    text: str = Field(min_length=1)
    is_correct: bool


class Quiz(CamelModel):
    question: str = Field(min_length=1)
    allow_multiple_answers: bool = False
    options: List[QuizOption] = Field(min_length=2, max_length=6)

    @model_validator(mode="after")
    def _check_answers(self) -> "Quiz":
        correct = self.correct_count
        if correct == 0:
            raise ValueError("quiz has no correct option")
        if correct > 1 and not self.allow_multiple_answers:
            raise ValueError("single-answer quiz marks more than one option correct")
        return self

    @property
    def correct_count(self) -> int:
        return sum(1 for option in self.options if option.is_correct)


# --- discovery -----------------------------------------------------------------

class SearchQuery(CamelModel):
    query: str = Field(min_length=1)
    target_category: str = ""
    expected_content_type: str = ""
    priority: int = Field(default=5, ge=1, le=10)
    language: ContentLanguage = ContentLanguage.KO

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value):
        """Unknown or missing codes fall back to Korean."""
        if isinstance(value, ContentLanguage):
            return value
        try:
            return ContentLanguage(str(value).strip().lower())
        except ValueError:
            return ContentLanguage.KO


class SearchContext(CamelModel):
    """What the app needs right now; steers query generation."""
    app_categories: List[str] = Field(default_factory=list)
    popular_keywords: List[str] = Field(default_factory=list)
    top_performing_tags: List[str] = Field(default_factory=list)
    seasonal_context: Optional[str] = None
    recently_published: List[str] = Field(default_factory=list)
    underrepresented_categories: List[str] = Field(default_factory=list)
    target_languages: List[ContentLanguage] = Field(
        default_factory=lambda: [ContentLanguage.KO, ContentLanguage.EN, ContentLanguage.JA]
    )


class VideoCandidate(CamelModel):
    """Search hit from the video source, before any download."""
    video_id: str
    title: str
    channel_id: str = ""
    channel_title: str = ""
    description: str = ""
    duration_seconds: Optional[int] = None
    view_count: Optional[int] = None
    published_at: Optional[str] = None
    language: ContentLanguage = ContentLanguage.KO


class VideoEvaluation(CamelModel):
    """Pre-screening verdict for one candidate."""
    video_id: str
    relevance_score: int = Field(ge=0, le=100)
    educational_value: int = Field(ge=0, le=100)
    short_form_suitability: int = Field(default=NEUTRAL_SCORE, ge=0, le=100)
    predicted_quality: int = Field(ge=0, le=100)
    recommendation: Recommendation
    reasoning: str = ""

    @classmethod
    def neutral(cls, video_id: str, reasoning: str) -> "VideoEvaluation":
        return cls(
            video_id=video_id,
            relevance_score=NEUTRAL_SCORE,
            educational_value=NEUTRAL_SCORE,
            short_form_suitability=NEUTRAL_SCORE,
            predicted_quality=NEUTRAL_SCORE,
            recommendation=Recommendation.MAYBE,
            reasoning=reasoning,
        )


# --- collaborator results --------------------------------------------------------

class Transcript(CamelModel):
    text: str
    segments: List[TranscriptSegment] = Field(default_factory=list)
    language: Optional[str] = None
    provider: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        if not self.segments:
            return None
        return max(segment.end_ms for segment in self.segments)


class RenderedClip(CamelModel):
    video_key: str
    thumbnail_key: Optional[str] = None
    duration_ms: Optional[int] = None


__all__ = [
    "NEUTRAL_SCORE",
    "CamelModel",
    "ContentLanguage",
    "Category",
    "EDUCATIONAL_CATEGORIES",
    "Difficulty",
    "Recommendation",
    "TranscriptSegment",
    "Segment",
    "ClipSegment",
    "EditPlan",
    "ContentMetadata",
    "QuizOption",
    "Quiz",
    "SearchQuery",
    "SearchContext",
    "VideoCandidate",
    "VideoEvaluation",
    "Transcript",
    "RenderedClip",
]
