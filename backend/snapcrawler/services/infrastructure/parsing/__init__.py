"""
Parsing Module

Extraction and typed decoding of model responses.

Usage:
    from snapcrawler.services.infrastructure.parsing import extract_response_text, parse_segments
"""

from .extraction import extract_response_text
from .response_parser import (
    parse_segments,
    parse_search_queries,
    parse_metadata,
    parse_edit_plan,
    parse_evaluations,
    parse_quiz,
    normalize_edit_plan,
    default_metadata,
    empty_edit_plan,
    neutral_evaluations,
)

__all__ = [
    "extract_response_text",
    "parse_segments",
    "parse_search_queries",
    "parse_metadata",
    "parse_edit_plan",
    "parse_evaluations",
    "parse_quiz",
    "normalize_edit_plan",
    "default_metadata",
    "empty_edit_plan",
    "neutral_evaluations",
]
