"""Shared fixtures for tests — synthetic conversations, no network calls."""

from __future__ import annotations

import hashlib

import numpy as np
import pytest

from chatkb.chunking.schemas import Message
from chatkb.embeddings.base import EmbeddingProvider

DIM = 8

# ---------------------------------------------------------------------------
# Fake embedding providers
# ---------------------------------------------------------------------------


class HashEmbedder(EmbeddingProvider):
    """Deterministic embedding based on a hash of the text."""

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([h[i % len(h)] / 255.0 + 0.01 for i in range(self._dim)])
        vec /= np.linalg.norm(vec)
        return vec.tolist()


class ScriptedEmbedder(EmbeddingProvider):
    """Returns pre-set vectors: by exact text match, else ``default``."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        max_batch_size: int = 2048,
    ):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0, 0.0]
        self.max_batch_size = max_batch_size
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vectors.get(t, self.default) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self.vectors.get(query, self.default)

    @property
    def dimension(self) -> int:
        return len(self.default)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hash_embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def constant_embedder() -> ScriptedEmbedder:
    """Every text gets the same vector, so similarity is always 1.0."""
    return ScriptedEmbedder()


@pytest.fixture
def support_conversation() -> list[Message]:
    """A short support exchange between a client and the team."""
    return [
        Message(
            content="Hi there! My payouts have been stuck since Monday.",
            author="client_42",
            timestamp=1_700_000_000,
            is_team=False,
        ),
        Message(
            content="Sorry to hear that. Can you share the transaction id?",
            author="agent_7",
            timestamp=1_700_000_060,
            is_team=True,
        ),
        Message(
            content="Sure, it is TX-99812. Thanks for the quick reply!",
            author="client_42",
            timestamp=1_700_000_120,
            is_team=False,
        ),
        Message(
            content="   ",
            author="client_42",
            timestamp=1_700_000_130,
            is_team=False,
        ),
    ]
