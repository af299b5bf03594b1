"""Model gateway: the opaque text-to-vector capability.

This package provides:
- An abstract EmbeddingBackend with a single capability, `embed_texts`
- A local sentence-transformers backend (EmbeddingGemma by default)
- Artifact download with LoadingProgress reporting

Example usage:
    >>> from semsearch.gateway import create_backend
    >>> backend = create_backend()
    >>> backend.load(progress_callback=lambda p: print(p.describe()))
    >>> vectors = backend.embed_texts(["task: search result | query: sky"])
"""

from .backend import (
    DEFAULT_MODEL,
    EMBEDDING_GEMMA,
    SEARCH_PREFIXES,
    EmbeddingBackend,
    LocalBackend,
    ModelSpec,
    TaskPrefixes,
    create_backend,
    get_model_spec,
)
from .models import ModelManager, get_model_manager
from .types import LoadingProgress, LoadingStatus, ProgressCallback

__all__ = [
    # Progress types
    "LoadingStatus",
    "LoadingProgress",
    "ProgressCallback",
    # Backends
    "EmbeddingBackend",
    "LocalBackend",
    "create_backend",
    # Model specification
    "ModelSpec",
    "TaskPrefixes",
    "SEARCH_PREFIXES",
    "EMBEDDING_GEMMA",
    "DEFAULT_MODEL",
    "get_model_spec",
    # Model storage
    "ModelManager",
    "get_model_manager",
]
