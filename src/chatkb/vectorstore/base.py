"""Abstract base class for vector stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from chatkb.vectorstore.schemas import (
    DEFAULT_SOURCE_TYPE,
    ChunkRecord,
    DocumentRecord,
    MetadataFilter,
    SearchResult,
)


class VectorStore(ABC):
    """Interface for knowledge-base storage backends.

    A store holds chunk records with their embeddings, plus the document
    records that group chunks by channel and date range.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length every stored embedding must have."""

    @abstractmethod
    def add(self, records: list[ChunkRecord]) -> int:
        """Insert records into the store.

        Args:
            records: Chunks with embeddings.

        Returns:
            Number of records successfully inserted.
        """

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Search for similar chunks.

        Args:
            query_embedding: The query vector.
            top_k: Maximum results to return.
            metadata_filter: Optional metadata filter.

        Returns:
            List of ``SearchResult`` sorted by relevance (highest first).
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of chunk records in the store."""

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Delete records by ID.

        Returns:
            Number of records deleted.
        """

    @abstractmethod
    def clear(self) -> None:
        """Delete all chunk and document records."""

    @abstractmethod
    def create_document(
        self,
        channel_id: str,
        date_range_start: int,
        date_range_end: int,
        source_type: str = DEFAULT_SOURCE_TYPE,
    ) -> DocumentRecord:
        """Register an ingested span of channel history and assign its id."""

    @abstractmethod
    def find_document(
        self,
        channel_id: str,
        date_range_start: int,
        date_range_end: int,
    ) -> DocumentRecord | None:
        """Return the document for this channel and range, if already ingested."""

    @abstractmethod
    def delete_document(self, doc_id: int) -> bool:
        """Remove a document record. Returns False if it did not exist."""

    def save(self, path: str) -> None:
        """Persist the store to disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support save()")

    def load(self, path: str) -> None:
        """Load the store from disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support load()")

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
