"""FAISS vector store — local, zero infrastructure.

Uses FAISS for similarity search with a parallel record list for filtering
and a small in-process registry of document records.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

import numpy as np

from chatkb.chunking.schemas import AuthorRole
from chatkb.errors import DimensionMismatchError
from chatkb.vectorstore.base import VectorStore
from chatkb.vectorstore.schemas import (
    DEFAULT_SOURCE_TYPE,
    ChunkRecord,
    DocumentRecord,
    MetadataFilter,
    SearchResult,
)
from chatkb.vectorstore.serialization import embedding_to_json, parse_stored_embedding

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed vector store with metadata filtering."""

    def __init__(self, dimension: int = 1536):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError("faiss-cpu required: pip install chatkb") from exc

        self._faiss = faiss
        self._dimension = dimension
        self._index = faiss.IndexFlatIP(dimension)  # Inner product (cosine after normalization)
        self._records: list[ChunkRecord] = []  # position == FAISS row id
        self._documents: dict[int, DocumentRecord] = {}
        self._next_doc_id = 1

    @property
    def dimension(self) -> int:
        return self._dimension

    @classmethod
    def open(cls, path: str | Path, dimension: int = 1536) -> FAISSStore:
        """Load the knowledge base at ``path``, or start an empty one there.

        Raises:
            DimensionMismatchError: If the saved index was built for another
                embedding dimension.
        """
        store = cls(dimension=dimension)
        if (Path(path) / "metadata.json").exists():
            store.load(str(path))
            if store.dimension != dimension:
                raise DimensionMismatchError(store.dimension, dimension)
        return store

    # ------------------------------------------------------------------
    # Chunk records
    # ------------------------------------------------------------------

    def add(self, records: list[ChunkRecord]) -> int:
        if not records:
            return 0

        for i, record in enumerate(records):
            if len(record.embedding) != self._dimension:
                raise DimensionMismatchError(self._dimension, len(record.embedding), index=i)

        self._index.add(self._normalized([r.embedding for r in records]))
        self._records.extend(records)

        logger.info("FAISSStore added %d records (total: %d)", len(records), self.count())
        return len(records)

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        if self._index.ntotal == 0:
            return []
        if len(query_embedding) != self._dimension:
            raise DimensionMismatchError(self._dimension, len(query_embedding))

        # Over-fetch if filtering to ensure enough results after filtering
        fetch_k = top_k * 4 if metadata_filter else top_k
        fetch_k = min(fetch_k, self._index.ntotal)

        scores, indices = self._index.search(self._normalized([query_embedding]), fetch_k)

        results: list[SearchResult] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1:
                continue
            record = self._records[int(idx)]

            if metadata_filter and not metadata_filter.matches(record):
                continue

            results.append(SearchResult(
                id=record.id,
                content=record.content,
                score=float(score),
                record=record,
            ))

            if len(results) >= top_k:
                break

        return results

    def count(self) -> int:
        return self._index.ntotal

    def delete(self, ids: list[str]) -> int:
        # IndexFlatIP has no native deletion; rebuild from the kept vectors
        id_set = set(ids)
        kept = [r for r in self._records if r.id not in id_set]
        deleted = len(self._records) - len(kept)
        if deleted == 0:
            return 0

        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records = []
        if kept:
            self._index.add(self._normalized([r.embedding for r in kept]))
            self._records = kept

        logger.info("FAISSStore deleted %d records (total: %d)", deleted, self.count())
        return deleted

    def clear(self) -> None:
        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records = []
        self._documents.clear()
        self._next_doc_id = 1

    # ------------------------------------------------------------------
    # Document records
    # ------------------------------------------------------------------

    def create_document(
        self,
        channel_id: str,
        date_range_start: int,
        date_range_end: int,
        source_type: str = DEFAULT_SOURCE_TYPE,
    ) -> DocumentRecord:
        if not channel_id or date_range_start is None or date_range_end is None:
            raise ValueError(
                "Missing required fields: channel_id, date_range_start, date_range_end"
            )

        doc = DocumentRecord(
            doc_id=self._next_doc_id,
            channel_id=channel_id,
            date_range_start=date_range_start,
            date_range_end=date_range_end,
            source_type=source_type,
            ingested_at=int(time.time()),
        )
        self._documents[doc.doc_id] = doc
        self._next_doc_id += 1
        return doc

    def find_document(
        self,
        channel_id: str,
        date_range_start: int,
        date_range_end: int,
    ) -> DocumentRecord | None:
        for doc in self._documents.values():
            if (
                doc.channel_id == channel_id
                and doc.date_range_start == date_range_start
                and doc.date_range_end == date_range_end
            ):
                return doc
        return None

    def delete_document(self, doc_id: int) -> bool:
        removed = self._documents.pop(doc_id, None)
        if removed is not None:
            logger.info("FAISSStore removed document %d", doc_id)
        return removed is not None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: str) -> None:
        """Save FAISS index, records and documents to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))

        records = []
        for record in self._records:
            data = record.to_dict()
            data["embedding"] = embedding_to_json(record.embedding)
            records.append(data)

        documents = [
            {
                "doc_id": d.doc_id,
                "channel_id": d.channel_id,
                "source_type": d.source_type,
                "date_range_start": d.date_range_start,
                "date_range_end": d.date_range_end,
                "ingested_at": d.ingested_at,
            }
            for d in self._documents.values()
        ]

        with open(p / "metadata.json", "w", encoding="utf-8") as f:
            json.dump({
                "dimension": self._dimension,
                "records": records,
                "documents": documents,
                "next_doc_id": self._next_doc_id,
            }, f)

        logger.info("FAISSStore saved to %s (%d records)", path, self.count())

    def load(self, path: str) -> None:
        """Load FAISS index, records and documents from disk."""
        p = Path(path)

        index = self._faiss.read_index(str(p / "index.faiss"))

        with open(p / "metadata.json", encoding="utf-8") as f:
            data = json.load(f)

        records = []
        for item in data["records"]:
            role = item.get("author_role")
            records.append(ChunkRecord(
                id=item["id"],
                content=item["content"],
                embedding=parse_stored_embedding(item["embedding"]),
                channel_id=item["channel_id"],
                doc_id=item["doc_id"],
                author_role=AuthorRole(role) if role else None,
                topic_tag=item.get("topic_tag"),
                message_timestamp=item.get("message_timestamp"),
            ))

        self._dimension = data.get("dimension", index.d)
        self._index = index
        self._records = records
        self._documents = {
            d["doc_id"]: DocumentRecord(**d) for d in data.get("documents", [])
        }
        self._next_doc_id = data.get("next_doc_id", len(self._documents) + 1)
        logger.info("FAISSStore loaded from %s (%d records)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _normalized(self, vectors: list[list[float]]) -> np.ndarray:
        arr = np.array(vectors, dtype=np.float32)
        # L2-normalize for cosine similarity via inner product
        self._faiss.normalize_L2(arr)
        return arr
