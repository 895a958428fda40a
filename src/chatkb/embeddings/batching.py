"""Split large embedding jobs into sequential provider-sized batches."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from chatkb.embeddings.base import EmbeddingProvider
from chatkb.errors import ChatKBError, EmbeddingCountMismatchError, EmbeddingError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def embed_in_batches(
    provider: EmbeddingProvider,
    texts: list[str],
    batch_size: int | None = None,
    delay: float = 0.0,
    on_progress: ProgressCallback | None = None,
) -> list[list[float]]:
    """Embed ``texts`` with as few provider calls as the batch limit allows.

    Texts that fit in one batch are sent in a single request. Larger inputs
    are split into sequential batches whose results are concatenated in
    order, sleeping ``delay`` seconds between batches.

    Args:
        provider: The embedding provider.
        texts: Texts to embed, in order.
        batch_size: Maximum texts per request. Defaults to
            ``provider.max_batch_size``.
        delay: Seconds to wait between batches.
        on_progress: Called as ``on_progress(done, total)`` after each batch.

    Returns:
        One vector per text.

    Raises:
        EmbeddingError: On empty input, or wrapping any provider failure.
        EmbeddingCountMismatchError: If a batch returns the wrong number
            of vectors.
    """
    if not texts:
        raise EmbeddingError("Texts must be a non-empty list")

    size = batch_size or provider.max_batch_size
    total = len(texts)
    results: list[list[float]] = []

    for start in range(0, total, size):
        batch = texts[start : start + size]
        try:
            embeddings = provider.embed_texts(batch)
        except ChatKBError:
            raise
        except Exception as exc:
            raise EmbeddingError(
                f"Failed to generate embeddings for batch starting at index {start}: {exc}"
            ) from exc

        if len(embeddings) != len(batch):
            raise EmbeddingCountMismatchError(expected=len(batch), actual=len(embeddings))

        results.extend(embeddings)
        done = start + len(batch)
        if on_progress is not None:
            on_progress(done, total)

        if done < total and delay > 0:
            time.sleep(delay)

    logger.debug(
        "Embedded %d texts in %d batch(es) via %s",
        total, (total + size - 1) // size, provider.provider_name(),
    )
    return results
