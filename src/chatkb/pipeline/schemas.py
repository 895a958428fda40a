"""Data models for the ingest pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class IngestResult:
    """Result of ingesting one batch of channel messages."""

    channel_id: str
    chunks_created: int
    chunks_embedded: int
    chunks_stored: int
    doc_id: int | None = None
    skipped: bool = False
    warnings: list[str] = field(default_factory=list)
