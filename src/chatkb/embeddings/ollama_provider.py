"""Ollama embedding provider — local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from chatkb.embeddings.base import EmbeddingProvider
from chatkb.errors import EmbeddingConnectionError, EmbeddingError, EmbeddingRateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    max_batch_size = 512

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts with one ``/api/embed`` call.

        Servers older than v0.5 lack the batch endpoint; for those the texts
        are embedded one at a time.
        """
        if not texts:
            raise EmbeddingError("Texts must be a non-empty list")

        try:
            data = self._post("/api/embed", {"model": self.model, "input": texts})
        except EmbeddingError as exc:
            if exc.status_code != 404:
                raise
            data = {}

        if "embeddings" in data:
            return data["embeddings"]

        logger.info("Ollama batch endpoint unavailable, embedding %d texts sequentially", len(texts))
        return [self._embed_single(text) for text in texts]

    def embed_query(self, query: str) -> list[float]:
        """Embed a single string."""
        return self._embed_single(query)

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_single(self, text: str) -> list[float]:
        data = self._post("/api/embeddings", {"model": self.model, "prompt": text})
        try:
            return data["embedding"]
        except KeyError as exc:
            raise EmbeddingError("Ollama response missing 'embedding'") from exc

    def _post(self, path: str, payload: dict) -> dict:
        try:
            resp = self._client.post(path, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise EmbeddingRateLimitError(
                    f"Ollama rate limit exceeded: {exc}", status_code=status
                ) from exc
            raise EmbeddingError(f"Ollama API error: {exc}", status_code=status) from exc
        except httpx.HTTPError as exc:
            raise EmbeddingConnectionError(f"Ollama connection error: {exc}") from exc
        return resp.json()
