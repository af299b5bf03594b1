"""EmbeddingService - model lifecycle and the batched embedding contract.

The service owns the single embedding model of the process. It loads the
model at most once, reports progress while doing so, and turns
`(query, documents)` into prefixed inputs for one backend call whose output
is split and ranked.

Example:
    >>> service = await get_instance(on_progress=lambda p: print(p.describe()))
    >>> result = await service.embed("What color is the sky?", ["The sky is blue."])
    >>> result.ranked_documents[0].text
    'The sky is blue.'
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Sequence

import numpy as np

from semsearch.gateway import (
    EmbeddingBackend,
    LoadingProgress,
    ProgressCallback,
    TaskPrefixes,
    create_backend,
)
from semsearch.ranking import rank

from .errors import EmbeddingError, InitializationError, NotReadyError
from .types import EmbedResult, Failed, Loading, ModelState, Ready, Unloaded

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Owns the embedding model and serves embedding requests.

    State moves Unloaded -> Loading -> Ready, or Loading -> Failed. A failed
    service may be loaded again; a ready one is never reloaded.

    Every call into the backend (load and inference) holds one lock, so
    concurrent requests never interleave inside the model. Blocking work runs
    in a worker thread to keep the event loop responsive.
    """

    def __init__(self, backend: EmbeddingBackend | None = None):
        """Initialize the service. Nothing is loaded until `load()`.

        Args:
            backend: Embedding backend to serve. Defaults to create_backend().
        """
        self._backend = backend if backend is not None else create_backend()
        self._state: ModelState = Unloaded()
        self._load_task: asyncio.Task[None] | None = None
        self._model_lock = threading.Lock()

    @property
    def backend(self) -> EmbeddingBackend:
        return self._backend

    @property
    def state(self) -> ModelState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    @property
    def prefixes(self) -> TaskPrefixes:
        """Task prefixes applied to queries and documents."""
        return self._backend.spec.prefixes

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def load(self, on_progress: ProgressCallback | None = None) -> EmbeddingService:
        """Load the model unless it is already loaded or loading.

        Concurrent callers share one initialization; only the callback of the
        caller that started it receives progress updates.

        Args:
            on_progress: Receives LoadingProgress updates on the event loop.

        Returns:
            This service, in the Ready state.

        Raises:
            InitializationError: If the backend could not be loaded.
        """
        if isinstance(self._state, Ready):
            return self

        if self._load_task is None:
            self._state = Loading()
            self._load_task = asyncio.create_task(self._initialize(on_progress))

        await asyncio.shield(self._load_task)
        return self

    async def _initialize(self, on_progress: ProgressCallback | None) -> None:
        loop = asyncio.get_running_loop()
        logger.info(f"Loading embedding model '{self._backend.spec.name}' via {self._backend.name}")

        def report(progress: LoadingProgress) -> None:
            loop.call_soon_threadsafe(self._record_progress, progress, on_progress)

        try:
            await asyncio.to_thread(self._load_backend, report)
        except asyncio.CancelledError:
            self._state = Unloaded()
            raise
        except Exception as exc:
            self._state = Failed(reason=str(exc) or exc.__class__.__name__)
            logger.error(f"Failed to initialize embedding service: {exc}")
            raise InitializationError(
                f"Could not load embedding model '{self._backend.spec.name}': {exc}"
            ) from exc
        finally:
            self._load_task = None

        self._state = Ready(dimension=self._backend.dimension)
        logger.info(f"Embedding model ready ({self._backend.dimension} dimensions)")

    def _load_backend(self, report: ProgressCallback) -> None:
        with self._model_lock:
            self._backend.load(report)

    def _record_progress(
        self,
        progress: LoadingProgress,
        on_progress: ProgressCallback | None,
    ) -> None:
        logger.debug(f"Loading {progress.describe()}")
        if isinstance(self._state, Loading):
            self._state = Loading(progress=progress)
        if on_progress is not None:
            on_progress(progress)

    # -------------------------------------------------------------------------
    # Embedding
    # -------------------------------------------------------------------------

    async def embed(self, query: str, documents: Sequence[str]) -> EmbedResult:
        """Embed a query and documents in one backend call and rank them.

        Args:
            query: Query text (the query prefix is added here).
            documents: Document texts (the document prefix is added here).

        Returns:
            EmbedResult with the query vector, one vector per document in
            input order, and the ranking (empty when there are no documents).

        Raises:
            NotReadyError: If the model is not loaded.
            EmbeddingError: If the backend fails or returns malformed or
                non-finite output.
        """
        state = self._state
        if not isinstance(state, Ready):
            raise NotReadyError("Embedding service is not ready.")

        documents = list(documents)
        texts = [
            self.prefixes.for_query(query),
            *(self.prefixes.for_document(doc) for doc in documents),
        ]

        try:
            raw = await asyncio.to_thread(self._embed_batch, texts)
        except Exception as exc:
            logger.error(f"Embedding request for {len(texts)} texts failed: {exc}")
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc

        vectors = np.asarray(raw, dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape != (len(texts), state.dimension):
            raise EmbeddingError(
                f"Backend returned shape {vectors.shape}, "
                f"expected ({len(texts)}, {state.dimension})"
            )
        if not np.isfinite(vectors).all():
            logger.error(f"Backend returned non-finite values for {len(texts)} texts")
            raise EmbeddingError("Backend returned non-finite embedding values")

        query_vector, document_vectors = vectors[0], vectors[1:]
        ranked = rank(query_vector, document_vectors, documents) if documents else []

        return EmbedResult(
            query_embedding=query_vector.tolist(),
            document_embeddings=document_vectors.tolist(),
            ranked_documents=ranked,
        )

    async def embed_document(self, text: str) -> list[float]:
        """Embed a single document (the query side is discarded)."""
        result = await self.embed("", [text])
        return result.document_embeddings[0]

    def _embed_batch(self, texts: list[str]) -> np.ndarray:
        with self._model_lock:
            return self._backend.embed_texts(texts)


# Module-level singleton for convenience
_default_service: EmbeddingService | None = None


def get_embedding_service(backend: EmbeddingBackend | None = None) -> EmbeddingService:
    """Get or create the process-wide embedding service.

    Args:
        backend: Backend for the service. Only used on first call.

    Returns:
        EmbeddingService instance (not necessarily loaded).
    """
    global _default_service
    if _default_service is None:
        _default_service = EmbeddingService(backend)
    return _default_service


async def get_instance(on_progress: ProgressCallback | None = None) -> EmbeddingService:
    """Return the process-wide service, loading it on first use.

    Later calls return the same service without re-initializing it; a call
    after a failed load retries the load.

    Raises:
        InitializationError: If the model could not be loaded.
    """
    return await get_embedding_service().load(on_progress)


__all__ = [
    "EmbeddingService",
    "get_embedding_service",
    "get_instance",
]
