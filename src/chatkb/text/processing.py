"""Text cleanup and sentence segmentation for chat messages.

Sentence splitting is a punctuation heuristic, not an NLP boundary
detector. Known limitations:

- A letter directly before ``.``/``!``/``?`` followed by a lowercase word
  is read as an abbreviation, so "I agree. lets go" stays one sentence.
- Multi-letter abbreviations followed by a capital ("Talk to Dr. Smith")
  are split, and "etc." mid-sentence followed by a capital is split too.
- Decimal numbers, URLs and e-mail addresses are safe only because the
  punctuation must be followed by whitespace.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_NEWLINES_RE = re.compile(r"\n{3,}")
_SENTENCE_END_RE = re.compile(r"([.!?])(\s+|$)")

# Candidates this short are treated as false positives ("A.", "?!")
_MIN_SENTENCE_CHARS = 3

DEFAULT_MIN_LENGTH = 10
DEFAULT_SUFFIX = "..."


def normalize_text(text: object) -> str:
    """Trim and collapse whitespace.

    Returns ``""`` for empty or non-string input.
    """
    if not text or not isinstance(text, str):
        return ""

    cleaned = _WHITESPACE_RE.sub(" ", text.strip())
    cleaned = _NEWLINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def split_into_sentences(text: object) -> list[str]:
    """Split text into sentences on ``.``, ``!`` and ``?``.

    Args:
        text: Raw or normalized text.

    Returns:
        Sentences in order. Text without any usable boundary comes back
        as a single element; empty or non-string input gives ``[]``.
    """
    if not text or not isinstance(text, str):
        return []

    normalized = _WHITESPACE_RE.sub(" ", text.strip())
    if not normalized:
        return []

    sentences: list[str] = []
    last_index = 0

    for match in _SENTENCE_END_RE.finditer(normalized):
        punct_pos = match.start()
        sentence = normalized[last_index : punct_pos + 1].strip()
        if len(sentence) < _MIN_SENTENCE_CHARS:
            continue

        before = normalized[punct_pos - 1] if punct_pos > 0 else ""
        next_pos = punct_pos + 2  # skip the punctuation and one space

        if before.isalpha() and next_pos < len(normalized):
            if not normalized[next_pos].isupper():
                # Looks like an abbreviation; keep scanning
                continue

        sentences.append(sentence)
        last_index = match.end()

    if last_index < len(normalized):
        remaining = normalized[last_index:].strip()
        if remaining:
            sentences.append(remaining)

    if not sentences:
        return [normalized]

    return sentences


def is_too_short(text: object, min_length: int = DEFAULT_MIN_LENGTH) -> bool:
    """Return True when text is missing or shorter than ``min_length``."""
    if not text or not isinstance(text, str):
        return True
    return len(text.strip()) < min_length


def truncate_text(text: object, max_length: int, suffix: str = DEFAULT_SUFFIX) -> str:
    """Cut text to ``max_length`` characters, suffix included."""
    if not text or not isinstance(text, str):
        return ""

    if len(text) <= max_length:
        return text

    return text[: max(0, max_length - len(suffix))] + suffix
