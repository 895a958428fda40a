"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from chatkb.chunking.schemas import ChunkingOptions

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "openai"
    # None leaves the choice to the provider's own default
    model: str | None = None
    dimension: int | None = Field(default=None, gt=0)
    max_batch_size: int | None = Field(default=None, gt=0)
    batch_delay: float = Field(default=0.1, ge=0.0)


class ChunkingSettings(BaseModel):
    threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    min_chunk_length: int = Field(default=10, ge=0)
    max_chunk_length: int = Field(default=2000, gt=0)

    def to_options(self) -> ChunkingOptions:
        return ChunkingOptions(
            threshold=self.threshold,
            min_chunk_length=self.min_chunk_length,
            max_chunk_length=self.max_chunk_length,
        )


class VectorStoreSettings(BaseModel):
    path: str = "local_data/knowledge_base"


class IngestionSettings(BaseModel):
    source_type: str = "discord_history"
    store_batch_size: int = Field(default=100, gt=0)


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("CHATKB_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def _apply_env_overrides(raw: dict) -> dict:
    """Overlay environment variables on top of file settings."""
    threshold = os.getenv("SEMANTIC_CHUNKING_THRESHOLD")
    if threshold:
        try:
            raw.setdefault("chunking", {})["threshold"] = float(threshold)
        except ValueError:
            logger.warning("Ignoring invalid SEMANTIC_CHUNKING_THRESHOLD=%r", threshold)

    # Only meaningful for the OpenAI provider
    model = os.getenv("OPENAI_EMBEDDING_MODEL")
    embedding = raw.get("embedding") or {}
    if model and embedding.get("provider", "openai") == "openai":
        raw.setdefault("embedding", {})["model"] = model

    return raw


def load_settings() -> Settings:
    """Load settings from YAML file, falling back to defaults."""
    path = _find_settings_file()
    raw: dict = {}
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    return Settings(**_apply_env_overrides(raw))
