"""Data models for messages, sentences and chunks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class AuthorRole(StrEnum):
    """Which side of the conversation a piece of text came from."""

    CLIENT = "client"
    TEAM = "team"


@dataclass(frozen=True)
class Message:
    """A single chat message to be chunked."""

    content: str
    author: str = ""
    timestamp: int = 0
    is_team: bool = False

    @property
    def author_role(self) -> AuthorRole:
        return AuthorRole.TEAM if self.is_team else AuthorRole.CLIENT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Build a message from a JSON-style dict (``isTeam`` is accepted)."""
        return cls(
            content=data.get("content") or "",
            author=str(data.get("author", "")),
            timestamp=int(data.get("timestamp", 0)),
            is_team=bool(data.get("is_team", data.get("isTeam", False))),
        )


@dataclass(frozen=True)
class SentenceUnit:
    """One sentence of a message, tagged with its origin.

    Lives only for the duration of a single chunking call.
    """

    text: str
    author_role: AuthorRole
    message_timestamp: int
    source_index: int


@dataclass(frozen=True)
class ChunkMetadata:
    """Bookkeeping stored alongside each chunk."""

    sentence_count: int
    original_length: int


@dataclass
class Chunk:
    """A topically coherent run of sentences, ready for persistence."""

    content: str
    author_role: AuthorRole
    message_timestamp: int
    metadata: ChunkMetadata

    def to_dict(self) -> dict[str, Any]:
        """Flatten to plain types for storage or JSON output."""
        return {
            "content": self.content,
            "author_role": self.author_role.value,
            "message_timestamp": self.message_timestamp,
            "metadata": {
                "sentence_count": self.metadata.sentence_count,
                "original_length": self.metadata.original_length,
            },
        }


class ChunkingOptions(BaseModel):
    """Per-run chunking parameters."""

    threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    min_chunk_length: int = Field(default=10, ge=0)
    max_chunk_length: int = Field(default=2000, gt=0)

