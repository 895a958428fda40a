"""Abstract base class for message chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from chatkb.chunking.schemas import Chunk, ChunkingOptions, Message


class BaseChunker(ABC):
    """Interface for conversation chunking strategies."""

    @abstractmethod
    def chunk(
        self,
        messages: Sequence[Message],
        options: ChunkingOptions | None = None,
    ) -> list[Chunk]:
        """Group messages into chunks.

        Args:
            messages: Messages in conversation order.
            options: Optional per-call overrides.

        Returns:
            List of ``Chunk`` objects.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
