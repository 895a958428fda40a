"""Similarity-driven chunking of chat conversations."""

from chatkb.chunking.base import BaseChunker
from chatkb.chunking.schemas import (
    AuthorRole,
    Chunk,
    ChunkingOptions,
    ChunkMetadata,
    Message,
    SentenceUnit,
)
from chatkb.chunking.semantic_chunker import SemanticChunker

__all__ = [
    "AuthorRole",
    "BaseChunker",
    "Chunk",
    "ChunkMetadata",
    "ChunkingOptions",
    "Message",
    "SemanticChunker",
    "SentenceUnit",
]
