"""Ingest pipeline — messages → chunks → embeddings → store."""

from chatkb.pipeline.ingest import IngestPipeline
from chatkb.pipeline.schemas import IngestResult

__all__ = ["IngestPipeline", "IngestResult"]
