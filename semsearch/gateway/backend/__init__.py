"""Embedding backend implementations.

Provides the pluggable embedding backend behind the model gateway:
- EmbeddingBackend: abstract capability (`embed_texts`)
- LocalBackend: sentence-transformers, in-process inference

Use `create_backend()` to build the configured backend:
    >>> from semsearch.gateway.backend import create_backend
    >>> backend = create_backend()
"""

from .base import EmbeddingBackend
from .factory import create_backend
from .local import LocalBackend
from .model_spec import (
    DEFAULT_MODEL,
    EMBEDDING_GEMMA,
    SEARCH_PREFIXES,
    ModelSpec,
    TaskPrefixes,
    get_model_spec,
)

__all__ = [
    # Base class
    "EmbeddingBackend",
    # Implementations
    "LocalBackend",
    # Model specification
    "ModelSpec",
    "TaskPrefixes",
    "SEARCH_PREFIXES",
    "EMBEDDING_GEMMA",
    "DEFAULT_MODEL",
    "get_model_spec",
    # Factory
    "create_backend",
]
