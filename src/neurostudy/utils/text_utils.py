"""Text processing utilities.

Common text manipulation functions used across modules.
"""

import re

# Patterns for removing thinking/reasoning blocks from LLM output
THINK_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<thinking>.*?</thinking>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]

TRUNCATION_MARKER = "\n\n[... content truncated due to size ...]\n\n"


def strip_think(text: str) -> str:
    """Remove thinking/reasoning blocks that some local models emit.

    Args:
        text: Raw LLM output text

    Returns:
        Cleaned text
    """
    result = text
    for pattern in THINK_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def truncate_head_tail(
    text: str, max_chars: int, head_ratio: float = 0.7
) -> tuple[str, bool]:
    """Trim text to max_chars, keeping its start and end.

    Headings and conclusions tend to sit at the ends of a document, so the
    middle is dropped and replaced by TRUNCATION_MARKER.

    Args:
        text: Input text (surrounding whitespace is stripped first)
        max_chars: Maximum length of the result
        head_ratio: Share of the budget kept from the start

    Returns:
        (text, truncated)
    """
    trimmed = text.strip()
    if len(trimmed) <= max_chars:
        return trimmed, False

    budget = max(0, max_chars - len(TRUNCATION_MARKER))
    head = int(budget * head_ratio)
    tail = budget - head
    tail_text = trimmed[-tail:] if tail > 0 else ""
    return trimmed[:head] + TRUNCATION_MARKER + tail_text, True
