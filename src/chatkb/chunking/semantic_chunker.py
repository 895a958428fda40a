"""Semantic chunker for chat transcripts.

Splits messages into sentences, embeds every sentence in one batched call,
and starts a new chunk whenever the cosine similarity between a sentence and
the one directly before it drops below the threshold. Each sentence is
compared with its predecessor only, never with a running chunk centroid.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

from chatkb.chunking.base import BaseChunker
from chatkb.chunking.schemas import (
    AuthorRole,
    Chunk,
    ChunkingOptions,
    ChunkMetadata,
    Message,
    SentenceUnit,
)
from chatkb.embeddings.base import EmbeddingProvider
from chatkb.embeddings.batching import embed_in_batches
from chatkb.errors import EmbeddingCountMismatchError
from chatkb.similarity import cosine_similarity
from chatkb.text.processing import normalize_text, split_into_sentences

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
TRUNCATION_SUFFIX = "..."


def default_threshold() -> float:
    """Similarity threshold from ``SEMANTIC_CHUNKING_THRESHOLD``, else 0.7."""
    raw = os.getenv("SEMANTIC_CHUNKING_THRESHOLD", "")
    try:
        return float(raw) if raw else DEFAULT_THRESHOLD
    except ValueError:
        logger.warning("Ignoring invalid SEMANTIC_CHUNKING_THRESHOLD=%r", raw)
        return DEFAULT_THRESHOLD


@dataclass
class _Accumulator:
    """The single open chunk during a walk over the sentences."""

    sentences: list[SentenceUnit]
    embeddings: list[list[float]]
    author_role: AuthorRole
    start_timestamp: int

    @classmethod
    def seed(cls, sentence: SentenceUnit, embedding: list[float]) -> _Accumulator:
        return cls(
            sentences=[sentence],
            embeddings=[embedding],
            author_role=sentence.author_role,
            start_timestamp=sentence.message_timestamp,
        )

    def append(self, sentence: SentenceUnit, embedding: list[float]) -> None:
        self.sentences.append(sentence)
        self.embeddings.append(embedding)
        # Client wins whenever both sides are mixed
        if sentence.author_role == AuthorRole.CLIENT:
            self.author_role = AuthorRole.CLIENT


class SemanticChunker(BaseChunker):
    """Chunker that groups consecutive, semantically similar sentences."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        options: ChunkingOptions | None = None,
        batch_delay: float = 0.0,
    ):
        self.embedding_provider = embedding_provider
        self.options = options or ChunkingOptions(threshold=default_threshold())
        self.batch_delay = batch_delay

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split_messages(self, messages: Sequence[Message]) -> list[SentenceUnit]:
        """Normalize messages and break them into tagged sentences."""
        sentences: list[SentenceUnit] = []

        for message in messages:
            content = normalize_text(message.content)
            if not content:
                continue

            for sentence in split_into_sentences(content):
                text = sentence.strip()
                if not text:
                    continue
                sentences.append(SentenceUnit(
                    text=text,
                    author_role=message.author_role,
                    message_timestamp=message.timestamp,
                    source_index=len(sentences),
                ))

        return sentences

    def chunk(
        self,
        messages: Sequence[Message],
        options: ChunkingOptions | None = None,
    ) -> list[Chunk]:
        """Chunk messages by semantic similarity.

        Args:
            messages: Messages in conversation order.
            options: Overrides the chunker's default options for this call.

        Returns:
            Chunks in conversation order. Chunks shorter than
            ``min_chunk_length`` are dropped.

        Raises:
            EmbeddingError: If the provider fails; no chunks are returned.
            EmbeddingCountMismatchError: If the provider returns the wrong
                number of vectors.
            DimensionMismatchError: If two sentence vectors differ in length.
        """
        opts = options or self.options

        sentences = self.split_messages(messages)
        if not sentences:
            return []

        embeddings = embed_in_batches(
            self.embedding_provider,
            [s.text for s in sentences],
            delay=self.batch_delay,
        )
        if len(embeddings) != len(sentences):
            raise EmbeddingCountMismatchError(expected=len(sentences), actual=len(embeddings))

        chunks: list[Chunk] = []
        current = _Accumulator.seed(sentences[0], embeddings[0])

        for i in range(1, len(sentences)):
            similarity = cosine_similarity(embeddings[i - 1], embeddings[i])

            if similarity >= opts.threshold:
                current.append(sentences[i], embeddings[i])
                continue

            logger.debug(
                "Boundary before sentence %d (similarity %.3f < %.3f)",
                i, similarity, opts.threshold,
            )
            self._emit(current, opts, chunks)
            current = _Accumulator.seed(sentences[i], embeddings[i])

        self._emit(current, opts, chunks)

        logger.info(
            "SemanticChunker produced %d chunks from %d sentences (%d messages)",
            len(chunks), len(sentences), len(messages),
        )
        return chunks

    async def achunk(
        self,
        messages: Sequence[Message],
        options: ChunkingOptions | None = None,
    ) -> list[Chunk]:
        """Run :meth:`chunk` in a worker thread.

        Calls for different message batches share no state and may run
        concurrently.
        """
        return await asyncio.to_thread(self.chunk, messages, options)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _emit(self, acc: _Accumulator, opts: ChunkingOptions, chunks: list[Chunk]) -> None:
        finalized = self._finalize(acc, opts)
        if finalized is not None:
            chunks.append(finalized)

    @staticmethod
    def _finalize(acc: _Accumulator, opts: ChunkingOptions) -> Chunk | None:
        """Turn an accumulator into a chunk, or None if it is too short."""
        content = " ".join(s.text for s in acc.sentences)

        if len(content) < opts.min_chunk_length:
            logger.debug("Dropping short chunk (%d chars): %r", len(content), content)
            return None

        final_content = content
        if len(content) > opts.max_chunk_length:
            final_content = content[: opts.max_chunk_length] + TRUNCATION_SUFFIX

        has_client = any(s.author_role == AuthorRole.CLIENT for s in acc.sentences)
        role = AuthorRole.CLIENT if has_client else acc.author_role

        return Chunk(
            content=final_content,
            author_role=role,
            message_timestamp=acc.start_timestamp,
            metadata=ChunkMetadata(
                sentence_count=len(acc.sentences),
                original_length=len(content),
            ),
        )
