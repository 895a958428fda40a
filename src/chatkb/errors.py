"""Exception types raised by the chunking core and embedding providers.

Input-quality problems (empty or short text) are never raised; they are
absorbed by the text helpers and show up as empty results instead.
"""

from __future__ import annotations


class ChatKBError(Exception):
    """Base class for all chatkb errors."""


class DimensionMismatchError(ChatKBError, ValueError):
    """Two vectors that must be compared have different lengths."""

    def __init__(self, expected: int, actual: int, index: int | None = None):
        self.expected = expected
        self.actual = actual
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Vector length mismatch{where}: {expected} vs {actual}")


class EmptyVectorError(ChatKBError, ValueError):
    """A zero-length vector was passed to a similarity computation."""

    def __init__(self, message: str = "Vectors must not be empty"):
        super().__init__(message)


class EmbeddingError(ChatKBError):
    """The embedding provider failed to return usable vectors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class EmbeddingRateLimitError(EmbeddingError):
    """The provider rejected the request because of rate limiting."""


class EmbeddingConnectionError(EmbeddingError):
    """The provider could not be reached."""


class EmbeddingCountMismatchError(EmbeddingError):
    """The provider returned a different number of vectors than requested."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding count mismatch: {actual} embeddings for {expected} texts"
        )
