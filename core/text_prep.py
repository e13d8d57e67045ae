"""
Reader AI - Chapter Text Preparation

Cleans raw chapter text and cuts it down to a prompt-sized window.

Handles:
- Whitespace runs collapsed to single spaces
- Control characters (below 0x20, and 0x7F) removed
- Truncation on the last sentence terminator inside the window
"""

import re

# Sentence-ending punctuation, CJK full-width forms included
SENTENCE_TERMINATORS = "。！？.!?"

ELLIPSIS = "..."

_WHITESPACE_RUN = re.compile(r"\s+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def clean_text(raw: str) -> str:
    """Collapse whitespace, drop control characters and trim."""
    text = _WHITESPACE_RUN.sub(" ", raw)
    # Runs after collapsing: a control character between spaces leaves two spaces
    text = _CONTROL_CHARS.sub("", text)
    return text.strip()


def truncate_at_sentence(text: str, limit: int) -> str:
    """
    Cut text to at most `limit` characters, preferring a sentence boundary.

    When no terminator exists past the first character of the window, the
    raw window is kept and ELLIPSIS is appended, so the result may be
    len(ELLIPSIS) characters longer than the limit.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    if len(text) <= limit:
        return text

    window = text[:limit]
    last_stop = max(window.rfind(ch) for ch in SENTENCE_TERMINATORS)

    if last_stop > 0:
        return window[:last_stop + 1]
    return window + ELLIPSIS


def prepare(raw: str, limit: int) -> str:
    """
    Prepare chapter text for a summary prompt.

    Args:
        raw: Chapter text exactly as extracted from the book
        limit: Maximum characters of cleaned text to keep

    Returns:
        Cleaned text, truncated on a sentence boundary when over the limit

    Raises:
        ValueError: If limit is negative
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    return truncate_at_sentence(clean_text(raw), limit)
