"""Cosine similarity between embedding vectors.

Used by the semantic chunker to decide where one topic ends and the next
begins. All functions are pure and accept any sequence of floats.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from chatkb.errors import DimensionMismatchError, EmptyVectorError

Vector = Sequence[float]


def _as_array(vec: Vector) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64)


def dot_product(vec_a: Vector, vec_b: Vector) -> float:
    """Dot product of two equal-length vectors."""
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(len(vec_a), len(vec_b))
    return float(np.dot(_as_array(vec_a), _as_array(vec_b)))


def magnitude(vec: Vector) -> float:
    """L2 norm. The zero vector (and the empty vector) has magnitude 0."""
    if len(vec) == 0:
        return 0.0
    return float(np.linalg.norm(_as_array(vec)))


def _cosine(dot: float, mag_a: float, mag_b: float) -> float:
    if mag_a == 0 or mag_b == 0:
        # Zero vectors are dissimilar to everything, themselves included
        return 0.0
    return max(-1.0, min(1.0, dot / (mag_a * mag_b)))


def cosine_similarity(vec_a: Vector, vec_b: Vector) -> float:
    """Cosine similarity in ``[-1, 1]``.

    Formula: ``cos(theta) = (A . B) / (||A|| * ||B||)``

    Raises:
        DimensionMismatchError: If the vectors differ in length.
        EmptyVectorError: If the vectors are empty.
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(len(vec_a), len(vec_b))
    if len(vec_a) == 0:
        raise EmptyVectorError()

    return _cosine(dot_product(vec_a, vec_b), magnitude(vec_a), magnitude(vec_b))


def cosine_similarity_batch(base: Vector, vectors: Sequence[Vector]) -> list[float]:
    """Compare ``base`` against every vector in ``vectors``.

    Same semantics as :func:`cosine_similarity`, but the magnitude of
    ``base`` is computed once.

    Returns:
        Similarity scores in the same order as ``vectors``.
    """
    if len(base) == 0:
        raise EmptyVectorError()

    base_arr = _as_array(base)
    mag_base = magnitude(base)

    scores: list[float] = []
    for i, vec in enumerate(vectors):
        if len(vec) != len(base):
            raise DimensionMismatchError(len(base), len(vec), index=i)
        arr = _as_array(vec)
        scores.append(_cosine(float(np.dot(base_arr, arr)), mag_base, magnitude(arr)))
    return scores
