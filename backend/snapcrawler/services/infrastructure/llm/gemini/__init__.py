"""
Gemini client package
"""

from .client import GeminiTextClient, translate_api_error

__all__ = ["GeminiTextClient", "translate_api_error"]
