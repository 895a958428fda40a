"""Embedding (de)serialization for stored chunk records.

Embeddings are written as JSON arrays. Float32 byte blobs, as returned by
some vector-aware SQLite builds, are accepted when reading.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import numpy as np


def embedding_to_json(embedding: Sequence[float]) -> str:
    """Serialize an embedding as a JSON array string."""
    if isinstance(embedding, (str, bytes)) or not isinstance(embedding, Sequence):
        raise TypeError("Embedding must be a sequence of floats")
    if len(embedding) == 0:
        raise ValueError("Embedding array cannot be empty")
    return json.dumps([float(x) for x in embedding])


def parse_stored_embedding(stored: str | bytes | Sequence[float]) -> list[float]:
    """Read an embedding stored as a list, JSON string or float32 bytes."""
    if isinstance(stored, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(stored), dtype=np.float32).astype(float).tolist()

    if isinstance(stored, str):
        try:
            return [float(x) for x in json.loads(stored)]
        except (json.JSONDecodeError, TypeError) as exc:
            raise ValueError(f"Failed to parse embedding string: {exc}") from exc

    if isinstance(stored, Sequence):
        return [float(x) for x in stored]

    raise TypeError(f"Unsupported embedding format: {type(stored).__name__}")
