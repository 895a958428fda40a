"""Knowledge-base storage — chunk records, document records, FAISS backend."""

from chatkb.vectorstore.base import VectorStore
from chatkb.vectorstore.schemas import (
    ChunkRecord,
    DocumentRecord,
    MetadataFilter,
    SearchResult,
)

__all__ = [
    "ChunkRecord",
    "DocumentRecord",
    "MetadataFilter",
    "SearchResult",
    "VectorStore",
]
