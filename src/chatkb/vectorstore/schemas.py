"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chatkb.chunking.schemas import AuthorRole

DEFAULT_SOURCE_TYPE = "discord_history"


@dataclass
class ChunkRecord:
    """A chunk with its embedding and channel/document association."""

    id: str
    content: str
    embedding: list[float]
    channel_id: str
    doc_id: int
    author_role: AuthorRole | None = None
    topic_tag: str | None = None
    message_timestamp: int | None = None

    def __post_init__(self) -> None:
        if not self.content or not self.embedding or not self.channel_id or not self.doc_id:
            raise ValueError(
                "Missing required fields: doc_id, channel_id, content, embedding"
            )

    def to_dict(self) -> dict[str, Any]:
        """Plain-typed view without the embedding."""
        return {
            "id": self.id,
            "content": self.content,
            "channel_id": self.channel_id,
            "doc_id": self.doc_id,
            "author_role": self.author_role.value if self.author_role else None,
            "topic_tag": self.topic_tag,
            "message_timestamp": self.message_timestamp,
        }


@dataclass(frozen=True)
class DocumentRecord:
    """One ingested span of a channel's history."""

    doc_id: int
    channel_id: str
    date_range_start: int
    date_range_end: int
    source_type: str = DEFAULT_SOURCE_TYPE
    ingested_at: int = 0


@dataclass(frozen=True)
class SearchResult:
    """A single search result from the vector store."""

    id: str
    content: str
    score: float
    record: ChunkRecord | None = field(default=None, compare=False)


@dataclass
class MetadataFilter:
    """Filter search results by chunk fields.

    All specified fields must match (AND logic).
    """

    channel_id: str | None = None
    doc_id: int | None = None
    author_role: AuthorRole | None = None
    topic_tag: str | None = None

    def matches(self, record: ChunkRecord) -> bool:
        """Check if a chunk record matches this filter."""
        if self.channel_id and record.channel_id != self.channel_id:
            return False
        if self.doc_id and record.doc_id != self.doc_id:
            return False
        if self.author_role and record.author_role != self.author_role:
            return False
        return not (self.topic_tag and record.topic_tag != self.topic_tag)
