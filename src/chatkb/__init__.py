"""Semantic chunking and knowledge-base ingestion for chat conversations."""

__version__ = "0.1.0"
