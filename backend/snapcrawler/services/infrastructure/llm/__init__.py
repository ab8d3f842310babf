"""
LLM access: Gemini client, prompt registry and the orchestrator
"""

from .orchestrator import LlmOrchestrator, EVALUATION_BATCH_SIZE
from .gemini import GeminiTextClient

__all__ = ["LlmOrchestrator", "EVALUATION_BATCH_SIZE", "GeminiTextClient"]
