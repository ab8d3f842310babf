"""
Prompt Registry

Structure:
    prompts/
    ├── __init__.py   # exports and registry
    ├── base.py       # PromptTemplate
    ├── content.py    # segments, edit plan, metadata, quiz
    └── discovery.py  # search queries, candidate evaluation

Usage:
    from snapcrawler.services.infrastructure.llm.prompts import format_prompt

    prompt = format_prompt("EXTRACT_KEY_SEGMENTS", transcript="...")
"""

from typing import Dict

from .base import PromptTemplate
from .content import (
    EXTRACT_KEY_SEGMENTS,
    GENERATE_EDIT_PLAN,
    REVIEWER_GUIDANCE,
    GENERATE_METADATA,
    GENERATE_QUIZ,
    LANGUAGE_INSTRUCTIONS,
    TITLE_EXAMPLES,
    NATIVE_LANGUAGE_NAMES,
)
from .discovery import (
    GENERATE_SEARCH_QUERIES,
    EVALUATE_VIDEOS,
)


PROMPT_REGISTRY: Dict[str, PromptTemplate] = {
    "EXTRACT_KEY_SEGMENTS": EXTRACT_KEY_SEGMENTS,
    "GENERATE_EDIT_PLAN": GENERATE_EDIT_PLAN,
    "REVIEWER_GUIDANCE": REVIEWER_GUIDANCE,
    "GENERATE_METADATA": GENERATE_METADATA,
    "GENERATE_QUIZ": GENERATE_QUIZ,
    "GENERATE_SEARCH_QUERIES": GENERATE_SEARCH_QUERIES,
    "EVALUATE_VIDEOS": EVALUATE_VIDEOS,
}


def get_prompt(name: str) -> PromptTemplate:
    """Get a prompt template by name"""
    if name not in PROMPT_REGISTRY:
        raise KeyError(f"Unknown prompt: {name}. Available: {list(PROMPT_REGISTRY.keys())}")
    return PROMPT_REGISTRY[name]


def format_prompt(name: str, **kwargs) -> str:
    """Get and format a prompt in one call"""
    return get_prompt(name).format(**kwargs)


def list_prompts() -> Dict[str, str]:
    """Prompt names with their descriptions"""
    return {name: prompt.description for name, prompt in PROMPT_REGISTRY.items()}


__all__ = [
    "PromptTemplate",
    "PROMPT_REGISTRY",
    "get_prompt",
    "format_prompt",
    "list_prompts",
    "EXTRACT_KEY_SEGMENTS",
    "GENERATE_EDIT_PLAN",
    "REVIEWER_GUIDANCE",
    "GENERATE_METADATA",
    "GENERATE_QUIZ",
    "GENERATE_SEARCH_QUERIES",
    "EVALUATE_VIDEOS",
    "LANGUAGE_INSTRUCTIONS",
    "TITLE_EXAMPLES",
    "NATIVE_LANGUAGE_NAMES",
]
