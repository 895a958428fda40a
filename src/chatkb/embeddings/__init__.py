"""Embedding providers — OpenAI, Ollama, HuggingFace."""

from chatkb.embeddings.base import EmbeddingProvider
from chatkb.embeddings.batching import embed_in_batches
from chatkb.embeddings.factory import (
    available_providers,
    embedding_provider_from_settings,
    get_embedding_provider,
)

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "embed_in_batches",
    "embedding_provider_from_settings",
    "get_embedding_provider",
]
