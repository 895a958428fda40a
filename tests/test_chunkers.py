"""Tests for the semantic chunker."""

from __future__ import annotations

import asyncio
import math

import pytest
from pydantic import ValidationError

from chatkb.chunking.base import BaseChunker
from chatkb.chunking.schemas import AuthorRole, Chunk, ChunkingOptions, Message
from chatkb.chunking.semantic_chunker import SemanticChunker, default_threshold
from chatkb.embeddings.base import EmbeddingProvider
from chatkb.errors import (
    DimensionMismatchError,
    EmbeddingCountMismatchError,
    EmbeddingRateLimitError,
)
from conftest import HashEmbedder, ScriptedEmbedder

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

A = [1.0, 0.0]
B = [0.2, math.sqrt(1 - 0.04)]  # cos(A, B) == 0.2
C = [0.0, 1.0]  # cos(A, C) == 0.0


def _msg(content: str, ts: int = 100, team: bool = False) -> Message:
    return Message(content=content, author="team" if team else "client", timestamp=ts, is_team=team)


class ShortEmbedder(EmbeddingProvider):
    """Returns one vector fewer than requested."""

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [[1.0, 0.0] for _ in texts[:-1]]

    def embed_query(self, query: str) -> list[float]:
        return [1.0, 0.0]

    @property
    def dimension(self) -> int:
        return 2


class RateLimitedEmbedder(ShortEmbedder):
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        raise EmbeddingRateLimitError("slow down", status_code=429)


# ---------------------------------------------------------------------------
# Sentence preparation
# ---------------------------------------------------------------------------


class TestSplitMessages:
    def test_sentences_are_tagged(self, constant_embedder, support_conversation):
        chunker = SemanticChunker(constant_embedder)
        sentences = chunker.split_messages(support_conversation)

        assert [s.text for s in sentences] == [
            "Hi there!",
            "My payouts have been stuck since Monday.",
            "Sorry to hear that.",
            "Can you share the transaction id?",
            "Sure, it is TX-99812.",
            "Thanks for the quick reply!",
        ]
        assert [s.source_index for s in sentences] == list(range(6))
        assert sentences[2].author_role == AuthorRole.TEAM
        assert sentences[2].message_timestamp == 1_700_000_060
        assert sentences[4].author_role == AuthorRole.CLIENT

    def test_blank_messages_skipped(self, constant_embedder):
        chunker = SemanticChunker(constant_embedder)
        assert chunker.split_messages([_msg(""), _msg("   \n ")]) == []


# ---------------------------------------------------------------------------
# SemanticChunker.chunk
# ---------------------------------------------------------------------------


class TestSemanticChunker:
    def test_is_base_chunker(self):
        assert issubclass(SemanticChunker, BaseChunker)
        assert SemanticChunker.strategy_name() == "SemanticChunker"

    def test_thanks_scenario(self, constant_embedder):
        messages = [
            _msg("Thanks!", ts=100),
            _msg("No problem, happy to help.", ts=101, team=True),
        ]
        chunks = SemanticChunker(constant_embedder).chunk(
            messages, ChunkingOptions(threshold=0.7),
        )

        assert len(chunks) == 1
        chunk = chunks[0]
        assert isinstance(chunk, Chunk)
        assert chunk.content == "Thanks! No problem, happy to help."
        assert chunk.author_role == AuthorRole.CLIENT
        assert chunk.message_timestamp == 100
        assert chunk.metadata.sentence_count == 2
        assert chunk.metadata.original_length == len(chunk.content)

    def test_low_similarity_splits(self):
        embedder = ScriptedEmbedder({
            "The server is down again.": A,
            "Billing question about invoices.": B,
        })
        messages = [
            _msg("The server is down again.", ts=1),
            _msg("Billing question about invoices.", ts=2),
        ]
        chunks = SemanticChunker(embedder).chunk(messages, ChunkingOptions(threshold=0.7))

        assert [c.content for c in chunks] == [
            "The server is down again.",
            "Billing question about invoices.",
        ]
        assert [c.message_timestamp for c in chunks] == [1, 2]
        assert all(c.metadata.sentence_count == 1 for c in chunks)

    def test_short_chunk_is_dropped(self):
        embedder = ScriptedEmbedder({
            "Tell me about the pricing tiers.": A,
            "Okay.": C,
        })
        messages = [_msg("Tell me about the pricing tiers."), _msg("Okay.")]
        chunks = SemanticChunker(embedder).chunk(
            messages, ChunkingOptions(min_chunk_length=10),
        )

        assert len(chunks) == 1
        assert chunks[0].content == "Tell me about the pricing tiers."

    def test_short_chunk_not_merged_backward(self):
        embedder = ScriptedEmbedder({"Okay.": [0.0, 1.0, 0.0]})
        messages = [_msg("Okay."), _msg("Now a longer follow-up message.")]
        chunks = SemanticChunker(embedder).chunk(messages)
        assert [c.content for c in chunks] == ["Now a longer follow-up message."]

    def test_count_mismatch_is_fatal(self):
        messages = [_msg(f"Sentence number {i} here.") for i in range(5)]
        with pytest.raises(EmbeddingCountMismatchError) as exc_info:
            SemanticChunker(ShortEmbedder()).chunk(messages)
        assert exc_info.value.expected == 5
        assert exc_info.value.actual == 4

    def test_provider_errors_propagate(self):
        with pytest.raises(EmbeddingRateLimitError):
            SemanticChunker(RateLimitedEmbedder()).chunk([_msg("Is anyone there?")])

    def test_dimension_mismatch_is_fatal(self):
        embedder = ScriptedEmbedder({"Second sentence here.": [1.0, 0.0]})
        messages = [_msg("First sentence here."), _msg("Second sentence here.")]
        with pytest.raises(DimensionMismatchError):
            SemanticChunker(embedder).chunk(messages)

    def test_empty_input(self, constant_embedder):
        assert SemanticChunker(constant_embedder).chunk([]) == []
        assert SemanticChunker(constant_embedder).chunk([_msg("   ")]) == []
        assert constant_embedder.calls == []

    def test_single_sentence(self, constant_embedder):
        chunks = SemanticChunker(constant_embedder).chunk([_msg("Just one sentence here.", ts=5)])
        assert len(chunks) == 1
        assert chunks[0].message_timestamp == 5
        assert chunks[0].metadata.sentence_count == 1

    def test_identical_embeddings_give_one_chunk(self, constant_embedder, support_conversation):
        chunks = SemanticChunker(constant_embedder).chunk(support_conversation)
        assert len(chunks) == 1
        assert chunks[0].metadata.sentence_count == 6
        assert chunks[0].message_timestamp == 1_700_000_000

    def test_threshold_is_inclusive(self):
        embedder = ScriptedEmbedder({
            "Alpha topic sentence.": A,
            "Beta topic sentence.": C,
        })
        messages = [_msg("Alpha topic sentence."), _msg("Beta topic sentence.")]
        chunks = SemanticChunker(embedder).chunk(messages, ChunkingOptions(threshold=0.0))
        assert len(chunks) == 1

    def test_compares_with_predecessor_not_first_sentence(self):
        # A -> mid -> C: each step is close, A and C are orthogonal
        mid = [math.sqrt(0.5), math.sqrt(0.5)]
        embedder = ScriptedEmbedder({
            "Alpha topic sentence.": A,
            "Middle topic sentence.": mid,
            "Gamma topic sentence.": C,
        })
        messages = [
            _msg("Alpha topic sentence."),
            _msg("Middle topic sentence."),
            _msg("Gamma topic sentence."),
        ]
        chunks = SemanticChunker(embedder).chunk(messages, ChunkingOptions(threshold=0.7))
        assert len(chunks) == 1

    def test_single_client_sentence_dominates(self, constant_embedder):
        messages = [
            _msg("We shipped the fix today.", team=True),
            _msg("Great, confirmed on my side.", team=False),
            _msg("Glad it works for you.", team=True),
        ]
        chunks = SemanticChunker(constant_embedder).chunk(messages)
        assert len(chunks) == 1
        assert chunks[0].author_role == AuthorRole.CLIENT

    def test_team_only_chunk(self, constant_embedder):
        messages = [
            _msg("Maintenance starts at noon.", team=True),
            _msg("Expect ten minutes of downtime.", team=True),
        ]
        chunks = SemanticChunker(constant_embedder).chunk(messages)
        assert chunks[0].author_role == AuthorRole.TEAM

    def test_truncation_after_length_check(self, constant_embedder):
        text = "This sentence is definitely longer than twenty characters."
        chunks = SemanticChunker(constant_embedder).chunk(
            [_msg(text)],
            ChunkingOptions(min_chunk_length=10, max_chunk_length=20),
        )
        assert chunks[0].content == text[:20] + "..."
        assert chunks[0].metadata.original_length == len(text)

    def test_every_sentence_appears_once(self, hash_embedder, support_conversation):
        chunker = SemanticChunker(hash_embedder)
        opts = ChunkingOptions(threshold=0.9, min_chunk_length=0)
        sentences = chunker.split_messages(support_conversation)
        chunks = chunker.chunk(support_conversation, opts)

        assert sum(c.metadata.sentence_count for c in chunks) == len(sentences)
        assert " ".join(c.content for c in chunks) == " ".join(s.text for s in sentences)

    def test_single_batched_request(self, hash_embedder, support_conversation):
        SemanticChunker(hash_embedder).chunk(support_conversation)
        assert len(hash_embedder.calls) == 1
        assert len(hash_embedder.calls[0]) == 6

    def test_large_input_split_into_ordered_batches(self):
        embedder = ScriptedEmbedder(max_batch_size=2)
        messages = [_msg(f"Update number {i} is ready.") for i in range(5)]
        chunks = SemanticChunker(embedder).chunk(messages)

        assert [len(c) for c in embedder.calls] == [2, 2, 1]
        flat = [t for call in embedder.calls for t in call]
        assert flat == [f"Update number {i} is ready." for i in range(5)]
        assert len(chunks) == 1

    def test_default_options_used(self):
        embedder = ScriptedEmbedder({"Beta topic sentence.": [0.0, 1.0, 0.0]})
        chunker = SemanticChunker(embedder, options=ChunkingOptions(threshold=-1.0))
        chunks = chunker.chunk([_msg("Alpha topic sentence."), _msg("Beta topic sentence.")])
        assert len(chunks) == 1

    def test_achunk(self, constant_embedder, support_conversation):
        chunker = SemanticChunker(constant_embedder)
        chunks = asyncio.run(chunker.achunk(support_conversation))
        assert len(chunks) == 1

    def test_to_dict(self, constant_embedder):
        chunk = SemanticChunker(constant_embedder).chunk([_msg("Where is my order?", ts=9)])[0]
        assert chunk.to_dict() == {
            "content": "Where is my order?",
            "author_role": "client",
            "message_timestamp": 9,
            "metadata": {"sentence_count": 1, "original_length": 18},
        }


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class TestChunkingOptions:
    def test_defaults(self):
        opts = ChunkingOptions()
        assert opts.threshold == 0.7
        assert opts.min_chunk_length == 10
        assert opts.max_chunk_length == 2000

    def test_threshold_out_of_range(self):
        with pytest.raises(ValidationError):
            ChunkingOptions(threshold=1.5)

    def test_length_bounds(self):
        assert ChunkingOptions(min_chunk_length=0).min_chunk_length == 0
        with pytest.raises(ValidationError):
            ChunkingOptions(min_chunk_length=-1)
        with pytest.raises(ValidationError):
            ChunkingOptions(max_chunk_length=0)

    def test_env_threshold(self, monkeypatch):
        monkeypatch.setenv("SEMANTIC_CHUNKING_THRESHOLD", "0.55")
        assert default_threshold() == 0.55
        assert SemanticChunker(HashEmbedder()).options.threshold == 0.55

    def test_env_threshold_invalid(self, monkeypatch):
        monkeypatch.setenv("SEMANTIC_CHUNKING_THRESHOLD", "high")
        assert default_threshold() == 0.7

    def test_message_from_dict(self):
        msg = Message.from_dict({"content": "hi", "author": 7, "timestamp": "12", "isTeam": True})
        assert msg == Message(content="hi", author="7", timestamp=12, is_team=True)
        assert msg.author_role == AuthorRole.TEAM
