"""Abstract base class for embedding providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Interface for text embedding models.

    Implementations must return exactly one vector per input text, in input
    order. Retries and rate limiting belong to the implementation.
    """

    #: Largest number of texts accepted by a single ``embed_texts`` call.
    max_batch_size: int = 2048

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Strings to embed.

        Returns:
            List of embedding vectors (same order as input).
        """

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        """Embed a single string.

        Args:
            query: The text to embed.

        Returns:
            Embedding vector.
        """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimensionality."""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
