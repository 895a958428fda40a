"""Message text cleanup and sentence splitting."""

from chatkb.text.processing import (
    is_too_short,
    normalize_text,
    split_into_sentences,
    truncate_text,
)

__all__ = [
    "is_too_short",
    "normalize_text",
    "split_into_sentences",
    "truncate_text",
]
