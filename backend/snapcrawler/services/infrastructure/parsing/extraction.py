"""
Pulls the payload out of raw model output.

Models wrap JSON in markdown fences or stray backticks often enough that
every structured call goes through extract_response_text() before decoding.
"""

import re

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")


def _extract_once(text: str) -> str:
    match = FENCED_BLOCK_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    trimmed = text.strip()
    if trimmed.startswith("`") and trimmed.endswith("`"):
        return trimmed[1:-1].strip()
    return trimmed


def extract_response_text(raw: str) -> str:
    """Return the payload of a model response.

    1. first fenced block (optionally tagged json), inner content trimmed
    2. otherwise text wrapped in backticks, backticks removed
    3. otherwise the trimmed text

    The rules are applied until the text stops changing, so
    extract_response_text(extract_response_text(x)) == extract_response_text(x).
    """
    if not raw:
        return ""
    current = raw
    while True:
        extracted = _extract_once(current)
        if extracted == current:
            return extracted
        current = extracted
