"""semsearch - local semantic search over a handful of documents.

Example:
    >>> from semsearch import EmbeddingService, SessionController
    >>> session = SessionController(EmbeddingService())
    >>> await session.load_model()
    >>> await session.add_document("The sky is blue.")
    >>> session.set_query("What color is the sky?")
    >>> results = await session.compare()
"""

from .gateway import LoadingProgress, LoadingStatus, create_backend
from .ranking import RankedDocument
from .service import (
    EmbeddingService,
    EmbeddingServiceError,
    get_embedding_service,
    get_instance,
)
from .session import SessionController, SessionPhase, SessionSnapshot

__all__ = [
    "EmbeddingService",
    "EmbeddingServiceError",
    "get_embedding_service",
    "get_instance",
    "SessionController",
    "SessionPhase",
    "SessionSnapshot",
    "RankedDocument",
    "LoadingProgress",
    "LoadingStatus",
    "create_backend",
]
