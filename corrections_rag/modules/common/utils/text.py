"""Text helpers shared by source excerpts, content analysis and chunking."""

import re
from typing import List

ELLIPSIS = "..."

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def excerpt(text: str, max_length: int = 300) -> str:
    """Bound text to max_length characters, appending an ellipsis when truncated.

    The ellipsis is added after the first max_length characters, so a
    truncated excerpt is max_length + 3 characters long.
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def split_sentences(text: str) -> List[str]:
    """Split text on sentence-ending punctuation followed by whitespace.

    Returns:
        Non-empty sentences with normalized whitespace, in text order
    """
    sentences = (normalize_whitespace(sentence) for sentence in _SENTENCE_BOUNDARY.split(text))
    return [sentence for sentence in sentences if sentence]
