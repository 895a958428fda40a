"""Ingestion pipeline — messages → chunk → embed → store.

This is the main entry point for adding chat history to the knowledge base.
A failed run writes nothing: chunking and embedding both finish before the
document record and chunk records are created.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from chatkb.chunking.base import BaseChunker
from chatkb.chunking.schemas import Message
from chatkb.chunking.semantic_chunker import SemanticChunker
from chatkb.embeddings.base import EmbeddingProvider
from chatkb.embeddings.batching import embed_in_batches
from chatkb.errors import DimensionMismatchError
from chatkb.pipeline.schemas import IngestResult
from chatkb.vectorstore.base import VectorStore
from chatkb.vectorstore.schemas import DEFAULT_SOURCE_TYPE, ChunkRecord

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates channel ingestion: chunk → embed → store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        chunker: BaseChunker | None = None,
        batch_size: int = 100,
        batch_delay: float = 0.1,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.chunker = chunker or SemanticChunker(embedding_provider, batch_delay=batch_delay)
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    def ingest_messages(
        self,
        messages: Sequence[Message],
        channel_id: str,
        topic_tag: str | None = None,
        source_type: str = DEFAULT_SOURCE_TYPE,
    ) -> IngestResult:
        """Ingest one batch of a channel's messages.

        Args:
            messages: Messages in conversation order.
            channel_id: Channel the messages belong to.
            topic_tag: Optional tag copied onto every stored chunk.
            source_type: Recorded on the document record.

        Returns:
            An ``IngestResult`` with counts and warnings.
        """
        warnings: list[str] = []

        if not messages:
            warnings.append("No messages to ingest")
            return IngestResult(channel_id, 0, 0, 0, warnings=warnings)

        timestamps = [m.timestamp for m in messages]
        start, end = min(timestamps), max(timestamps)

        # Step 1: Resume, skip ranges already ingested
        existing = self.vector_store.find_document(channel_id, start, end)
        if existing is not None:
            logger.info(
                "Skipping %s [%d, %d]: already ingested as doc %d",
                channel_id, start, end, existing.doc_id,
            )
            warnings.append(f"Already ingested as document {existing.doc_id}")
            return IngestResult(
                channel_id, 0, 0, 0,
                doc_id=existing.doc_id,
                skipped=True,
                warnings=warnings,
            )

        # Step 2: Chunk
        chunks = self.chunker.chunk(messages)
        if not chunks:
            warnings.append("Chunker produced zero chunks")
            return IngestResult(channel_id, 0, 0, 0, warnings=warnings)

        # Step 3: Embed chunk contents
        embeddings = embed_in_batches(
            self.embedding_provider,
            [c.content for c in chunks],
            delay=self.batch_delay,
        )

        # Step 4: Store. Vectors are checked before anything is written.
        dimension = self.vector_store.dimension
        for i, embedding in enumerate(embeddings):
            if len(embedding) != dimension:
                raise DimensionMismatchError(dimension, len(embedding), index=i)

        doc = self.vector_store.create_document(
            channel_id=channel_id,
            date_range_start=start,
            date_range_end=end,
            source_type=source_type,
        )
        records: list[ChunkRecord] = []
        stored = 0
        try:
            records = [
                ChunkRecord(
                    id=str(uuid.uuid4()),
                    content=chunk.content,
                    embedding=embedding,
                    channel_id=channel_id,
                    doc_id=doc.doc_id,
                    author_role=chunk.author_role,
                    topic_tag=topic_tag,
                    message_timestamp=chunk.message_timestamp,
                )
                for chunk, embedding in zip(chunks, embeddings, strict=True)
            ]
            for i in range(0, len(records), self.batch_size):
                stored += self.vector_store.add(records[i : i + self.batch_size])
        except Exception:
            logger.warning(
                "Store failed for %s (doc %d), rolling back %d records",
                channel_id, doc.doc_id, stored,
            )
            self.vector_store.delete([r.id for r in records[:stored]])
            self.vector_store.delete_document(doc.doc_id)
            raise

        logger.info(
            "Ingested %s (doc %d): %d messages → %d chunks → %d stored",
            channel_id, doc.doc_id, len(messages), len(chunks), stored,
        )

        return IngestResult(
            channel_id=channel_id,
            chunks_created=len(chunks),
            chunks_embedded=len(embeddings),
            chunks_stored=stored,
            doc_id=doc.doc_id,
            warnings=warnings,
        )
