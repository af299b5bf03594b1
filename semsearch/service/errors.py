"""Exceptions raised by the embedding service."""


class EmbeddingServiceError(Exception):
    """Base exception for embedding service errors."""


class InitializationError(EmbeddingServiceError):
    """Raised when the model could not be loaded.

    The service is left in the Failed state; calling `load()` again retries.
    """


class NotReadyError(EmbeddingServiceError):
    """Raised when an embedding is requested before the model is Ready."""


class EmbeddingError(EmbeddingServiceError):
    """Raised when a single embedding request fails or returns bad output."""


__all__ = [
    "EmbeddingServiceError",
    "InitializationError",
    "NotReadyError",
    "EmbeddingError",
]
