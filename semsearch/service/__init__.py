"""Embedding service: model lifecycle, prefixed embedding and ranking.

Example usage:
    >>> from semsearch.service import EmbeddingService
    >>> service = EmbeddingService()
    >>> await service.load()
    >>> result = await service.embed("query", ["doc one", "doc two"])
"""

from .errors import (
    EmbeddingError,
    EmbeddingServiceError,
    InitializationError,
    NotReadyError,
)
from .lib import EmbeddingService, get_embedding_service, get_instance
from .types import EmbedResult, Failed, Loading, ModelState, Ready, Unloaded

__all__ = [
    # Service
    "EmbeddingService",
    "get_embedding_service",
    "get_instance",
    # State
    "ModelState",
    "Unloaded",
    "Loading",
    "Ready",
    "Failed",
    "EmbedResult",
    # Errors
    "EmbeddingServiceError",
    "InitializationError",
    "NotReadyError",
    "EmbeddingError",
]
