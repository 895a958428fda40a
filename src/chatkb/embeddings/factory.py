"""Embedding provider factory — registry, lazy import, singleton cache.

``embedding_provider_from_settings`` is what the CLI uses: it maps the
``embedding`` settings section onto each provider's constructor arguments.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from chatkb.embeddings.base import EmbeddingProvider

if TYPE_CHECKING:
    from chatkb.config import EmbeddingSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name, settings_kwargs)
#
# settings_kwargs maps EmbeddingSettings fields to constructor arguments.
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str, dict[str, str]]] = [
    (
        "openai",
        "chatkb.embeddings.openai_provider",
        "OpenAIEmbeddingProvider",
        {"model": "model", "dimension": "dimensions"},
    ),
    (
        "ollama",
        "chatkb.embeddings.ollama_provider",
        "OllamaEmbeddingProvider",
        {"model": "model", "dimension": "dimension"},
    ),
    (
        "huggingface",
        "chatkb.embeddings.huggingface_provider",
        "HuggingFaceEmbeddingProvider",
        {"model": "model"},
    ),
]

# Singleton cache
_provider_cache: dict[str, EmbeddingProvider] = {}


def _lookup(provider: str) -> tuple[str, str, str, dict[str, str]]:
    key = provider.lower()
    for entry in _PROVIDER_REGISTRY:
        if entry[0] == key:
            return entry
    available = available_providers()
    raise ValueError(f"Unknown embedding provider '{provider}'. Available: {available}")


def get_embedding_provider(
    provider: str = "openai",
    **kwargs,
) -> EmbeddingProvider:
    """Get an embedding provider by name.

    Args:
        provider: One of ``openai``, ``ollama``, ``huggingface``.
        **kwargs: Passed to the provider constructor.

    Returns:
        An ``EmbeddingProvider`` instance. Calls without kwargs share one
        cached instance per provider.
    """
    key, module_path, cls_name, _ = _lookup(provider)

    if not kwargs and key in _provider_cache:
        return _provider_cache[key]

    mod = importlib.import_module(module_path)
    cls = getattr(mod, cls_name)
    instance = cls(**kwargs)
    logger.debug("Created embedding provider %s", cls_name)
    if not kwargs:
        _provider_cache[key] = instance
    return instance


def embedding_provider_from_settings(
    settings: EmbeddingSettings,
    provider: str | None = None,
) -> EmbeddingProvider:
    """Build the provider described by an ``embedding`` settings section.

    Args:
        settings: Settings whose ``model`` and ``dimension`` (when set) are
            passed to the constructor and whose ``max_batch_size`` (when set)
            caps the provider's request size.
        provider: Overrides ``settings.provider``.
    """
    key, _, _, field_map = _lookup(provider or settings.provider)

    kwargs = {}
    for field, arg in field_map.items():
        value = getattr(settings, field)
        if value is not None:
            kwargs[arg] = value

    instance = get_embedding_provider(key, **kwargs)
    if settings.max_batch_size is not None and settings.max_batch_size < instance.max_batch_size:
        instance.max_batch_size = settings.max_batch_size
        logger.debug("Capped %s batch size at %d", key, settings.max_batch_size)
    return instance


def available_providers() -> list[str]:
    """Return names of registered embedding providers."""
    return [entry[0] for entry in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _provider_cache.clear()
