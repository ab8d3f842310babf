"""
Call contracts for each LLM operation.

Every orchestrator call declares how much output it may produce, how creative
the model may be and which shape the answer must have. Tuning a single
operation means editing its entry here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_OUTPUT_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.2


class ResponseShape(str, Enum):
    TEXT = "text"
    JSON_OBJECT = "json_object"
    JSON_ARRAY = "json_array"


@dataclass(frozen=True)
class LlmCallConfig:
    """Contract for one orchestrator operation."""
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    shape: ResponseShape = ResponseShape.JSON_OBJECT

    @property
    def response_format(self) -> Optional[str]:
        return None if self.shape == ResponseShape.TEXT else "json"


LLM_OPERATIONS: Dict[str, LlmCallConfig] = {
    # free-form answer, no JSON response
    "analyze": LlmCallConfig(shape=ResponseShape.TEXT),
    "extract_key_segments": LlmCallConfig(shape=ResponseShape.JSON_ARRAY),
    "generate_edit_plan": LlmCallConfig(),
    "generate_metadata": LlmCallConfig(
        max_output_tokens=2048,
        temperature=0.4,
    ),
    "generate_search_queries": LlmCallConfig(
        max_output_tokens=4096,
        temperature=0.7,
        shape=ResponseShape.JSON_ARRAY,
    ),
    "evaluate_videos": LlmCallConfig(shape=ResponseShape.JSON_ARRAY),
    "generate_quiz": LlmCallConfig(
        max_output_tokens=2048,
        temperature=0.5,
    ),
}


def get_call_config(operation: str) -> LlmCallConfig:
    """Return the contract for an operation; unknown names are a programming error."""
    if operation not in LLM_OPERATIONS:
        raise KeyError(f"Unknown LLM operation '{operation}'. Available: {sorted(LLM_OPERATIONS)}")
    return LLM_OPERATIONS[operation]
