"""OpenAI embedding provider — text-embedding-3-small/large.

Requires the ``openai`` package and an API key via ``OPENAI_API_KEY``.
The model can be overridden with ``OPENAI_EMBEDDING_MODEL``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from chatkb.embeddings.base import EmbeddingProvider
from chatkb.errors import (
    DimensionMismatchError,
    EmbeddingConnectionError,
    EmbeddingCountMismatchError,
    EmbeddingError,
    EmbeddingRateLimitError,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

BATCH_SIZE = 2048  # OpenAI max batch size
MAX_RETRIES = 3


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    max_batch_size = BATCH_SIZE

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        dimensions: int | None = None,
        max_retries: int = MAX_RETRIES,
        client: Any | None = None,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError("openai package required: pip install chatkb") from exc

        self._openai = openai
        self.model = model or os.getenv("OPENAI_EMBEDDING_MODEL", DEFAULT_MODEL)
        self._dimensions = dimensions or _DIMENSION_MAP.get(self.model, 1536)
        self._client: Any = client or openai.OpenAI(api_key=api_key, max_retries=max_retries)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed up to ``BATCH_SIZE`` texts in one request.

        Texts are stripped before sending. Larger jobs should go through
        :func:`chatkb.embeddings.batching.embed_in_batches`.
        """
        if not texts:
            raise EmbeddingError("Texts must be a non-empty list")

        cleaned = [t.strip() if isinstance(t, str) else "" for t in texts]
        if any(not t for t in cleaned):
            raise EmbeddingError("All texts must be non-empty strings")

        if len(cleaned) > BATCH_SIZE:
            raise EmbeddingError(f"Batch size {len(cleaned)} exceeds maximum {BATCH_SIZE}")

        resp = self._create(cleaned)

        if len(resp.data) != len(cleaned):
            raise EmbeddingCountMismatchError(expected=len(cleaned), actual=len(resp.data))

        # Sort by index to guarantee order
        sorted_data = sorted(resp.data, key=lambda x: x.index)
        embeddings = [d.embedding for d in sorted_data]
        for i, emb in enumerate(embeddings):
            self._check_dimension(emb, index=i)
        return embeddings

    def embed_query(self, query: str) -> list[float]:
        if not isinstance(query, str) or not query.strip():
            raise EmbeddingError("Text must be a non-empty string")

        resp = self._create([query.strip()])
        embedding = resp.data[0].embedding
        self._check_dimension(embedding)
        return embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, texts: list[str]) -> Any:
        openai = self._openai
        try:
            return self._client.embeddings.create(model=self.model, input=texts)
        except openai.RateLimitError as exc:
            raise EmbeddingRateLimitError(
                f"OpenAI rate limit exceeded: {exc}", status_code=429
            ) from exc
        except openai.APIConnectionError as exc:
            raise EmbeddingConnectionError(f"OpenAI connection error: {exc}") from exc
        except openai.APIStatusError as exc:
            raise EmbeddingError(
                f"OpenAI API error: {exc} (status: {exc.status_code})",
                status_code=exc.status_code,
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingError(f"OpenAI API error: {exc}") from exc

    def _check_dimension(self, embedding: list[float], index: int | None = None) -> None:
        if not embedding or len(embedding) != self._dimensions:
            raise DimensionMismatchError(
                self._dimensions, len(embedding or []), index=index,
            )
